"""Run an App on a real socket.

uvicorn does the HTTP work; this module owns the start/stop sequence
and hands back a ``ServerHandle`` for it::

    handle = await start_server(app)
    await handle.ready        # a renderer is installed
    ...
    await handle.close()      # stop accepting, release the port
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn

if TYPE_CHECKING:
    from warble.app import App
    from warble.server.state import ReadySignal

logger = logging.getLogger("warble.server")


class ServerHandle:
    """A listening server.

    ``close()`` may be called any number of times; only the first one
    does anything, later calls return once the server is down.
    """

    __slots__ = ("_closing", "_server", "_task", "port", "ready")

    def __init__(self, server: uvicorn.Server, task: asyncio.Task[None], *, port: int, ready: ReadySignal) -> None:
        self._server = server
        self._task = task
        self._closing = False
        self.port = port
        self.ready = ready

    @property
    def closed(self) -> bool:
        return self._task.done()

    async def close(self) -> None:
        """Stop accepting connections and wait for the socket to be released."""
        if not self._closing:
            self._closing = True
            self._server.should_exit = True
        await self.wait_closed()

    async def wait_closed(self) -> None:
        await asyncio.shield(self._task)
        if self._closing:
            logger.debug("Server on port %d closed", self.port)


async def start_server(app: App, *, host: str | None = None, port: int | None = None) -> ServerHandle:
    """Bind *app* and return once the socket is listening.

    *host* and *port* default to the app's config; ``port=0`` picks a
    free port, available afterwards as ``handle.port``. A bind failure
    raises ``OSError``.
    """
    config = app.config
    bind_host = host if host is not None else config.host
    bind_port = port if port is not None else config.port

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=bind_host,
            port=bind_port,
            lifespan="on",
            log_config=None,
            log_level=config.log_level,
            access_log=False,
        )
    )
    task = asyncio.create_task(_serve(server), name="warble-server")

    while not server.started:
        if task.done():
            await task
            msg = f"Could not start server on {bind_host}:{bind_port}"
            raise OSError(msg)
        await asyncio.sleep(0.01)

    bound_port = server.servers[0].sockets[0].getsockname()[1]
    logger.info("Server started at localhost:%d", bound_port)
    return ServerHandle(server, task, port=bound_port, ready=app.renderers.ready)


async def _serve(server: uvicorn.Server) -> None:
    # uvicorn exits the process when startup fails; keep that inside the task
    try:
        await server.serve()
    except SystemExit as exc:
        msg = f"Server exited during startup (status {exc.code})"
        raise OSError(msg) from None


def run(app: App) -> None:
    """Serve *app* until interrupted (Ctrl-C or SIGTERM)."""
    asyncio.run(_run_until_stopped(app))


async def _run_until_stopped(app: App) -> None:
    handle = await start_server(app)
    await handle.wait_closed()
