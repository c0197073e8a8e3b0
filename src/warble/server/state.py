"""The current renderer and the signal that one exists.

``RendererCell`` is the single place the serving renderer lives. The
lifecycle code writes it (once in production, on every rebuild in
development); request handlers only read it.

Thread safety:
    Everything runs on one event loop. A swap is a single attribute
    assignment, so a reader sees either the old or the new renderer,
    never a mix. Handlers take one snapshot per request.
"""

import asyncio
from collections.abc import Generator
from typing import Any

from warble.rendering.renderer import Renderer


class ReadySignal:
    """A one-shot, awaitable flag.

    ``await signal`` returns immediately once ``set()`` has been
    called, and may be awaited any number of times::

        signal = ReadySignal()
        ...
        await signal   # blocks until signal.set()
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    def __await__(self) -> Generator[Any, None, None]:
        return self.wait().__await__()

    def __repr__(self) -> str:
        return f"<ReadySignal {'set' if self.is_set() else 'pending'}>"


class RendererCell:
    """Holds the current renderer plus its ready signal."""

    __slots__ = ("_generation", "_ready", "_renderer")

    def __init__(self, renderer: Renderer | None = None) -> None:
        self._renderer: Renderer | None = None
        self._ready = ReadySignal()
        self._generation = 0
        if renderer is not None:
            self.swap(renderer)

    @property
    def ready(self) -> ReadySignal:
        """Set once the first renderer has been installed."""
        return self._ready

    @property
    def generation(self) -> int:
        """How many renderers have been installed so far."""
        return self._generation

    @property
    def current(self) -> Renderer:
        """The renderer new requests should use.

        Raises ``RuntimeError`` if called before the first swap; the
        ready gate keeps handlers from getting here that early.
        """
        renderer = self._renderer
        if renderer is None:
            msg = "No renderer installed yet; await the ready signal first."
            raise RuntimeError(msg)
        return renderer

    def swap(self, renderer: Renderer) -> None:
        """Install *renderer* for all subsequent requests."""
        self._renderer = renderer
        self._generation += 1
        self._ready.set()
