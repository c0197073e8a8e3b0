"""Favicon middleware.

Answers ``/favicon.ico`` from a fixed file so browsers' automatic icon
requests never reach the renderer. The icon is read once, on first
use, and kept in memory.
"""

import base64
import hashlib
from pathlib import Path

from warble.errors import ConfigurationError
from warble.http.request import Request
from warble.http.response import Response
from warble.middleware.protocol import AnyResponse, Next

_ALLOWED = "GET, HEAD, OPTIONS"


class Favicon:
    """Serve a favicon from *path* at ``/favicon.ico``.

    - ``GET``/``HEAD``: the icon, with a strong ETag and long cache lifetime
    - ``OPTIONS``: 200 with an ``Allow`` header
    - anything else: 405

    Raises ``ConfigurationError`` at construction if the file is missing,
    so a broken deployment fails at startup rather than per request.
    """

    __slots__ = ("_cache_control", "_icon", "_path")

    def __init__(self, path: str | Path, *, max_age: int = 60 * 60 * 24 * 365) -> None:
        self._path = Path(path).resolve()
        if not self._path.is_file():
            msg = f"Favicon not found: {self._path}"
            raise ConfigurationError(msg)
        self._cache_control = f"public, max-age={max_age}"
        self._icon: tuple[bytes, str] | None = None

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        if request.path != "/favicon.ico":
            return await next(request)

        if request.method not in ("GET", "HEAD"):
            status = 200 if request.method == "OPTIONS" else 405
            return Response(body="", status=status, content_type="text/plain").with_header(
                "Allow", _ALLOWED
            )

        body, etag = self._load()
        response = Response(body=body, content_type="image/x-icon").with_headers(
            {"Cache-Control": self._cache_control, "ETag": etag}
        )
        if request.headers.get("if-none-match") == etag:
            return response.with_body(b"").with_status(304)
        return response

    def _load(self) -> tuple[bytes, str]:
        if self._icon is None:
            body = self._path.read_bytes()
            digest = base64.b64encode(hashlib.md5(body).digest()).decode("ascii")  # noqa: S324
            self._icon = (body, f'"{digest}"')
        return self._icon
