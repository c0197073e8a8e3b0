"""Immutable HTTP request.

Frozen metadata parsed from the ASGI scope. The render path never reads
a request body, so none is buffered here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from warble.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request."""

    method: str
    path: str
    query_string: bytes
    headers: Headers
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None

    @property
    def url(self) -> str:
        """Request target as the client sent it (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    @property
    def is_head(self) -> bool:
        return self.method == "HEAD"

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            query_string=scope.get("query_string", b""),
            headers=Headers(tuple(scope.get("headers", ()))),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
        )
