"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

No base class required. The pipeline checks the shape, not the lineage.

``next`` may return a ``Response`` or a ``StreamingResponse``. Both
share the ``.with_header()`` / ``.with_status()`` chainable API, so
middleware can modify them uniformly.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from warble.http.request import Request
from warble.http.response import Response, StreamingResponse

# Any response type the pipeline can produce
type AnyResponse = Response | StreamingResponse

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Protocol for warble middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> AnyResponse:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class PoweredBy:
            async def __call__(self, request: Request, next: Next) -> AnyResponse:
                return (await next(request)).with_header("X-Powered-By", "warble")
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
