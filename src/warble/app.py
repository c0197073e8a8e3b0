"""Warble application class.

Mutable during setup (middleware, page handler, lifecycle hooks).
Frozen at runtime when the first ASGI scope arrives.
"""

import inspect
import threading
from collections.abc import Callable
from typing import Any

from warble._internal.asgi import Receive, Scope, Send
from warble.config import AppConfig
from warble.errors import ConfigurationError
from warble.middleware.protocol import Middleware, Next
from warble.server.handler import build_pipeline, handle_request
from warble.server.state import RendererCell


class App:
    """The ASGI application serving one front-end bundle.

    Mutable during setup (middleware, page handler, hooks). Frozen at
    runtime when the first scope arrives.

    The app owns the ``RendererCell``; whoever builds renderers swaps
    them in, and the page handler reads from it.

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one caller compiles the pipeline.
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_middleware_list",
        "_page_handler",
        "_pipeline",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "renderers",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self.renderers: RendererCell = RendererCell()
        self._middleware_list: list[Middleware] = []
        self._page_handler: Next | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._pipeline: Next | None = None

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline. First added is outermost."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def set_page_handler(self, handler: Next) -> None:
        """Install the catch-all handler every unmatched request reaches."""
        self._check_not_frozen()
        self._page_handler = handler

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware_list)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        after the server stops accepting new requests.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        """Run startup hooks (also used by the test client)."""
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        """Run shutdown hooks (also used by the test client)."""
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._pipeline is not None

        await handle_request(scope, receive, send, pipeline=self._pipeline)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the middleware chain. MUST hold _freeze_lock."""
        if self._page_handler is None:
            msg = "No page handler installed. Build the app with warble.create_app()."
            raise ConfigurationError(msg)
        self._pipeline = build_pipeline(tuple(self._middleware_list), self._page_handler)
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Add middleware and hooks before the server starts."
            )
            raise RuntimeError(msg)
