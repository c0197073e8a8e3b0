"""Async test client for warble applications.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Any

from warble.app import App
from warble.http.response import Response


@dataclass(frozen=True, slots=True)
class StreamResult:
    """What the app sent for one request, message by message.

    ``chunks`` holds every non-empty body message in order, so tests can
    see how a streamed page was split. ``messages`` is the raw ASGI
    conversation.
    """

    status: int
    headers: dict[str, str]
    chunks: tuple[bytes, ...]
    messages: tuple[dict[str, Any], ...] = field(repr=False, default=())

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


def _scope(method: str, path: str, headers: dict[str, str] | None) -> dict[str, Any]:
    if "?" in path:
        path_part, query_string = path.split("?", 1)
    else:
        path_part = path
        query_string = ""

    raw_headers = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "path": path_part,
        "raw_path": path_part.encode("latin-1"),
        "query_string": query_string.encode("latin-1"),
        "root_path": "",
        "headers": raw_headers,
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 0),
    }


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for warble applications.

    Returns the same ``Response`` type used in production. Sends requests
    through the ASGI interface directly, no sockets involved. Entering
    the client runs the app's startup hooks; leaving runs shutdown.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __slots__ = ("app",)

    def __init__(self, app: App) -> None:
        self.app = app

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        await self.app.startup()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.app.shutdown()

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a HEAD request."""
        return await self.request("HEAD", path, headers=headers)

    async def options(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("OPTIONS", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        result = await self.stream(method, path, headers=headers)

        content_type = "text/html; charset=utf-8"
        extra_headers: list[tuple[str, str]] = []
        for name, value in result.headers.items():
            if name == "content-type":
                content_type = value
            elif name != "content-length":
                extra_headers.append((name, value))

        return Response(
            body=result.body,
            status=result.status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )

    async def stream(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> StreamResult:
        """Send a request and keep the body split the way it was sent."""
        messages: list[dict[str, Any]] = []
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": b"", "more_body": False}
            return {"type": "http.disconnect"}

        async def send(message: dict[str, Any]) -> None:
            messages.append(message)

        await self.app(_scope(method, path, headers), receive, send)
        return _result(messages)

    async def events(
        self,
        path: str,
        *,
        max_events: int = 1,
        timeout: float = 5.0,
        after_connect: Any = None,
    ) -> StreamResult:
        """Read an event stream until *max_events* named events arrived.

        *after_connect* (sync or async callable) runs once the first body
        chunk has arrived, which is where a test triggers the events it
        waits for. The request is cancelled afterwards, like a browser tab
        being closed. Raises ``TimeoutError`` if the events never come.
        """
        messages: list[dict[str, Any]] = []
        started = asyncio.Event()
        enough = asyncio.Event()
        seen = 0

        async def receive() -> dict[str, Any]:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: dict[str, Any]) -> None:
            nonlocal seen
            messages.append(message)
            if message["type"] != "http.response.body":
                return
            started.set()
            seen += message.get("body", b"").count(b"event: ")
            if seen >= max_events:
                enough.set()

        task = asyncio.create_task(self.app(_scope("GET", path, None), receive, send))
        try:
            async with asyncio.timeout(timeout):
                await started.wait()
                if after_connect is not None:
                    result = after_connect()
                    if asyncio.iscoroutine(result):
                        await result
                await enough.wait()
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        return _result(messages)


def _result(messages: list[dict[str, Any]]) -> StreamResult:
    status = 200
    headers: dict[str, str] = {}
    chunks: list[bytes] = []
    for message in messages:
        if message["type"] == "http.response.start":
            status = message["status"]
            headers = {
                name.decode("latin-1"): value.decode("latin-1")
                for name, value in message.get("headers", [])
            }
        elif message["type"] == "http.response.body" and message.get("body"):
            chunks.append(message["body"])
    return StreamResult(status=status, headers=headers, chunks=tuple(chunks), messages=tuple(messages))
