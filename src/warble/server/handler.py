"""ASGI handler: translates ASGI scope/messages to warble types.

The only component that touches raw HTTP ASGI messages. Converts the
scope to a typed Request, runs it through the middleware chain down to
the page handler, and sends the result back through ASGI send().
"""

import logging
from collections.abc import Callable
from typing import Any

from warble._internal.asgi import Receive, Scope, Send
from warble.errors import HTTPError
from warble.http.request import Request
from warble.http.response import Response, StreamingResponse
from warble.middleware.protocol import AnyResponse, Next
from warble.server.sender import send_response, send_streaming_response

logger = logging.getLogger("warble.server")


def build_pipeline(middleware: tuple[Callable[..., Any], ...], endpoint: Next) -> Next:
    """Wrap *endpoint* in *middleware*; the first entry ends up outermost."""
    handler = endpoint
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> AnyResponse:
            return await _mw(req, _next)

        handler = make_next
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,  # noqa: ARG001
    send: Send,
    *,
    pipeline: Next,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)

    try:
        response = await pipeline(request)
    except HTTPError as exc:
        logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
        response = Response(
            body=exc.detail or f"Error {exc.status}",
            status=exc.status,
            content_type="text/plain; charset=utf-8",
        )
        for name, value in exc.headers:
            response = response.with_header(name, value)
    except Exception:
        logger.exception("500 %s %s", request.method, request.path)
        response = Response(
            body="Internal Server Error",
            status=500,
            content_type="text/plain; charset=utf-8",
        )

    if isinstance(response, StreamingResponse):
        await send_streaming_response(response, send, head=request.is_head)
    else:
        await send_response(response, send, head=request.is_head)
