"""Static file serving middleware.

Serves a directory under a URL prefix, or a single file at an exact
path. Missing files fall through to the next handler, the same as a
path outside the prefix.
"""

import mimetypes
from email.utils import formatdate
from pathlib import Path

from warble.config import AppConfig
from warble.http.request import Request
from warble.http.response import Response
from warble.middleware.protocol import AnyResponse, Next


def cache_control_for(max_age: int) -> str:
    """``Cache-Control`` value for a lifetime in seconds."""
    return f"public, max-age={max_age}"


class StaticFiles:
    """Middleware that serves static files.

    *path* may be a directory (sub-paths after *prefix* are resolved
    inside it) or a single file (served only for *prefix* itself).

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        # Directory under a prefix, cached for a day
        app.add_middleware(StaticFiles("./dist", prefix="/dist",
                                       cache_control="public, max-age=86400"))

        # A single file at a fixed URL
        app.add_middleware(StaticFiles("./dist/service-worker.js",
                                       prefix="/service-worker.js"))
    """

    __slots__ = ("_cache_control", "_path", "_prefix")

    def __init__(
        self,
        path: str | Path,
        prefix: str = "/static",
        *,
        cache_control: str = "public, max-age=0",
    ) -> None:
        self._path = Path(path).resolve()
        self._cache_control = cache_control
        self._prefix = "/" + prefix.strip("/")

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def cache_control(self) -> str:
        return self._cache_control

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a static file or fall through."""
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if path != self._prefix and not path.startswith(self._prefix.rstrip("/") + "/"):
            return await next(request)

        file_path = self._locate(path[len(self._prefix) :].lstrip("/"))
        if file_path is None:
            return await next(request)
        if isinstance(file_path, Response):
            return file_path

        return self._serve_file(file_path, request)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _locate(self, relative: str) -> Path | Response | None:
        """Map the path remainder onto the filesystem.

        Returns the file to serve, a 403 for traversal attempts, or
        ``None`` when nothing servable exists.
        """
        if not self._path.is_dir():
            # Single-file mount: only the exact prefix matches
            if relative or not self._path.is_file():
                return None
            return self._path

        file_path = (self._path / relative).resolve() if relative else self._path
        if not file_path.is_relative_to(self._path):
            return Response(body="Forbidden", status=403, content_type="text/plain")
        if not file_path.is_file():
            return None
        return file_path

    def _serve_file(self, file_path: Path, request: Request) -> Response:
        """Read a file and build a response with validators."""
        stat = file_path.stat()
        etag = f'W/"{stat.st_size:x}-{int(stat.st_mtime * 1000):x}"'

        headers = {
            "Cache-Control": self._cache_control,
            "ETag": etag,
            "Last-Modified": formatdate(stat.st_mtime, usegmt=True),
        }

        content_type, _ = mimetypes.guess_type(file_path.name)
        if content_type is None:
            content_type = "application/octet-stream"

        if _etag_matches(request.headers.get("if-none-match"), etag):
            return Response(body=b"", status=304, content_type=content_type).with_headers(headers)

        return Response(
            body=file_path.read_bytes(), content_type=content_type
        ).with_headers(headers)


def _etag_matches(header: str | None, etag: str) -> bool:
    if not header:
        return False
    if header.strip() == "*":
        return True
    bare = etag.removeprefix("W/")
    return any(tag.strip().removeprefix("W/") == bare for tag in header.split(","))


def serve(path: str | Path, prefix: str, config: AppConfig, *, cacheable: bool = False) -> StaticFiles:
    """Static middleware for *path* with the server's caching policy.

    Cacheable assets get a long lifetime in production only; everything
    else must be revalidated on every request.
    """
    max_age = config.static_max_age if cacheable and config.is_production else 0
    return StaticFiles(
        config.resolve(path),
        prefix=prefix,
        cache_control=cache_control_for(max_age),
    )
