"""Development server: watch the build output, rebuild the renderer.

The front-end build runs in its own watch mode and rewrites the server
bundle and client manifest as sources change. This module picks those
rewrites up and hands them to the app:

    BundleWatcher --(memory object stream)--> DevServer._consume --> on_update

- ``BundleWatcher`` polls both files and sends a ``BuildUpdate`` down
  a one-directional anyio channel whenever they change and parse.
- ``DevServer`` consumes the channel, calls ``on_update`` for each
  build, sets its ready signal after the first one, and tells
  connected browsers to reload.
- ``BuildEvents`` is the middleware browsers connect to for those
  reload notifications (``text/event-stream``).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio
from anyio.abc import ObjectReceiveStream, ObjectSendStream

from warble.config import AppConfig
from warble.errors import BundleLoadError
from warble.http.request import Request
from warble.http.response import StreamingResponse
from warble.middleware.protocol import AnyResponse, Next
from warble.rendering.bundle import (
    ClientManifest,
    ServerBundle,
    load_client_manifest,
    load_server_bundle,
)
from warble.server.state import ReadySignal

if TYPE_CHECKING:
    from warble.app import App

logger = logging.getLogger("warble.dev")

HMR_PATH = "/__warble_hmr"

type UpdateCallback = Callable[[ServerBundle, ClientManifest], None]


@dataclass(frozen=True, slots=True)
class BuildUpdate:
    """One complete build: a server bundle and its client manifest."""

    bundle: ServerBundle
    client_manifest: ClientManifest


class BundleWatcher:
    """Polls the build output and emits a ``BuildUpdate`` per change.

    A change is any difference in size or mtime of either file. Files
    that do not parse (e.g. caught half-written) are logged and skipped;
    the next write changes the fingerprint again and is retried.
    """

    __slots__ = ("_bundle_path", "_interval", "_manifest_path")

    def __init__(self, bundle_path: str | Path, manifest_path: str | Path, *, interval: float = 0.5) -> None:
        self._bundle_path = Path(bundle_path)
        self._manifest_path = Path(manifest_path)
        self._interval = interval

    @property
    def bundle_path(self) -> Path:
        return self._bundle_path

    def fingerprint(self) -> tuple[int, int, int, int] | None:
        """Size and mtime of both files, or ``None`` if either is missing."""
        try:
            bundle = self._bundle_path.stat()
            manifest = self._manifest_path.stat()
        except FileNotFoundError:
            return None
        return (bundle.st_size, bundle.st_mtime_ns, manifest.st_size, manifest.st_mtime_ns)

    def load(self) -> BuildUpdate:
        return BuildUpdate(
            bundle=load_server_bundle(self._bundle_path),
            client_manifest=load_client_manifest(self._manifest_path),
        )

    async def run(self, updates: ObjectSendStream[BuildUpdate]) -> None:
        """Watch until cancelled, sending each loadable build to *updates*."""
        last: tuple[int, int, int, int] | None = None
        failure: str | None = None
        async with updates:
            while True:
                try:
                    current = self.fingerprint()
                except OSError as exc:
                    if str(exc) != failure:
                        failure = str(exc)
                        logger.warning("Cannot read build output: %s", exc)
                    current = None
                else:
                    failure = None
                if current is not None and current != last:
                    last = current
                    try:
                        update = self.load()
                    except BundleLoadError as exc:
                        logger.warning("Build output not loadable yet: %s", exc)
                    else:
                        await updates.send(update)
                await anyio.sleep(self._interval)


class BuildEvents:
    """Middleware streaming ``reload`` events to connected browsers.

    Each client connected to *path* receives ``event: reload`` with the
    build number after every rebuild. A client that falls behind by
    more than a handful of builds skips the extras; one reload is enough.
    """

    __slots__ = ("_path", "_subscribers")

    def __init__(self, path: str = HMR_PATH) -> None:
        self._path = path
        self._subscribers: set[ObjectSendStream[int]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.path != self._path:
            return await next(request)
        return StreamingResponse(
            chunks=self.subscribe(),
            content_type="text/event-stream",
            headers=(("Cache-Control", "no-cache, no-transform"),),
        )

    async def subscribe(self) -> AsyncIterator[str]:
        """Event-stream frames until the notifier is closed."""
        send, receive = anyio.create_memory_object_stream[int](max_buffer_size=16)
        self._subscribers.add(send)
        try:
            yield ": connected\n\n"
            async with receive:
                async for build in receive:
                    yield f"event: reload\ndata: {build}\n\n"
        finally:
            self._subscribers.discard(send)
            send.close()

    def notify(self, build: int) -> None:
        for stream in list(self._subscribers):
            try:
                stream.send_nowait(build)
            except anyio.WouldBlock:
                pass
            except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                self._subscribers.discard(stream)

    def close(self) -> None:
        """End every open event stream."""
        for stream in self._subscribers:
            stream.close()
        self._subscribers.clear()


class DevServer:
    """Runs the watch/rebuild loop for one app.

    ``await dev_server`` (or ``await dev_server.ready``) resolves after
    the first build has been handed to ``on_update``.
    """

    __slots__ = ("_on_update", "_task", "builds", "events", "ready", "watcher")

    def __init__(
        self,
        watcher: BundleWatcher,
        on_update: UpdateCallback,
        *,
        events: BuildEvents | None = None,
    ) -> None:
        self.watcher = watcher
        self.events = events or BuildEvents()
        self.ready = ReadySignal()
        self.builds = 0
        self._on_update = on_update
        self._task: asyncio.Task[None] | None = None

    def __await__(self) -> Generator[Any, None, None]:
        return self.ready.__await__()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start watching in the background."""
        if self.running:
            return
        logger.info("Watching %s for builds", self.watcher.bundle_path)
        self._task = asyncio.create_task(self._run(), name="warble-dev-watch")

    async def stop(self) -> None:
        """Stop watching and disconnect reload clients."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.events.close()

    async def _run(self) -> None:
        send, receive = anyio.create_memory_object_stream[BuildUpdate](max_buffer_size=1)
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self.watcher.run, send)
                tg.start_soon(self._consume, receive)
        except Exception:
            logger.exception("Build watcher stopped; restart the server to pick up builds")

    async def _consume(self, updates: ObjectReceiveStream[BuildUpdate]) -> None:
        async with updates:
            async for update in updates:
                self.apply(update)

    def apply(self, update: BuildUpdate) -> None:
        """Hand one build to ``on_update`` and announce it."""
        try:
            self._on_update(update.bundle, update.client_manifest)
        except Exception:
            logger.exception("Rebuilding the renderer failed; keeping the previous one")
            return
        self.builds += 1
        logger.info("Server bundle updated (build %d)", self.builds)
        self.ready.set()
        self.events.notify(self.builds)


def setup_dev_server(
    app: App,
    on_update: UpdateCallback,
    *,
    config: AppConfig,
    hmr_path: str = HMR_PATH,
) -> DevServer:
    """Wire the watch/rebuild loop into *app*.

    Mounts the reload event stream, starts watching on app startup and
    stops on shutdown. ``on_update(bundle, client_manifest)`` is called
    for every build, the first one included.
    """
    watcher = BundleWatcher(
        config.server_bundle_path,
        config.client_manifest_path,
        interval=config.dev_poll_interval,
    )
    dev_server = DevServer(watcher, on_update, events=BuildEvents(hmr_path))
    app.add_middleware(dev_server.events)
    app.on_startup(dev_server.start)
    app.on_shutdown(dev_server.stop)
    return dev_server
