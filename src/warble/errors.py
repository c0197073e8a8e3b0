"""Warble exception hierarchy.

Shared across the renderer, middleware, handler, and bootstrap so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class WarbleError(Exception):
    """Base for all warble-specific errors."""


class ConfigurationError(WarbleError):
    """Raised when server configuration is invalid.

    Typically raised while the app is being assembled, before the
    first request is served.
    """


class BundleLoadError(WarbleError):
    """A server bundle or client manifest is missing or malformed.

    Fatal at production startup. In development the watcher logs it
    and waits for the next build.
    """


class RenderError(WarbleError):
    """Rendering a page failed.

    ``code`` mirrors the status the failure should map to. The render
    handler treats ``code == 404`` as "page not found"; anything else
    is an internal error.
    """

    def __init__(self, message: str = "", *, code: int = 500) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class HTTPError(WarbleError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware. The ASGI handler catches these and answers
    with a plain-text response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing in the pipeline could answer the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
