"""The catch-all page handler.

Builds a render context for the request, asks the current renderer for
a stream, and turns the outcome into exactly one response:

- the renderer produced its first chunk -> 200 ``StreamingResponse``
- ``RenderError`` with ``code == 404``  -> 404 ``404 | Page Not Found``
- any other failure before output       -> 500 ``500 | Internal Server Error``

Failures after output has started are logged with the URL like any
other render error, then left to the sender: the status line is
already on the wire, so the body is closed where it stands.
"""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable

from warble.context import RenderContext
from warble.errors import RenderError
from warble.http.request import Request
from warble.http.response import Response, StreamingResponse
from warble.middleware.protocol import AnyResponse
from warble.server.state import RendererCell

logger = logging.getLogger("warble.server")

HTML = "text/html"
NOT_FOUND_BODY = "404 | Page Not Found"
SERVER_ERROR_BODY = "500 | Internal Server Error"

type PageHandler = Callable[[Request], Awaitable[AnyResponse]]


async def render(request: Request, cell: RendererCell) -> AnyResponse:
    """Render the page for *request* with the cell's current renderer."""
    started = time.perf_counter()
    url = request.url
    context = RenderContext(url=url)

    logger.info("Rendering: %s", url)

    # One snapshot per request: a rebuild mid-stream does not affect us
    renderer = cell.current
    stream = renderer.render_to_stream(context)

    try:
        first = await anext(stream, None)
    except RenderError as exc:
        if exc.code == 404:
            return Response(body=NOT_FOUND_BODY, status=404, content_type=HTML)
        return _server_error(url, exc)
    except Exception as exc:
        return _server_error(url, exc)

    return StreamingResponse(
        chunks=_timed(first, stream, started, url),
        content_type=HTML,
    )


def gated(cell: RendererCell) -> PageHandler:
    """Page handler that waits for the first renderer before rendering.

    Once the ready signal is set the wait returns immediately, so only
    requests that arrive during the initial build are held back.
    """

    async def handler(request: Request) -> AnyResponse:
        await cell.ready
        return await render(request, cell)

    return handler


def direct(cell: RendererCell) -> PageHandler:
    """Page handler for a cell that is already populated."""

    async def handler(request: Request) -> AnyResponse:
        return await render(request, cell)

    return handler


def _server_error(url: str, exc: BaseException) -> Response:
    logger.error("Error during render : %s", url, exc_info=exc)
    return Response(body=SERVER_ERROR_BODY, status=500, content_type=HTML)


async def _timed(
    first: str | None,
    stream: AsyncIterator[str],
    started: float,
    url: str,
) -> AsyncIterator[str]:
    if first is not None:
        yield first
    try:
        async for chunk in stream:
            yield chunk
    except Exception as exc:
        # Status is already sent; the sender closes the body
        logger.error("Error during render : %s", url, exc_info=exc)
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("Whole request: %dms", elapsed_ms)
