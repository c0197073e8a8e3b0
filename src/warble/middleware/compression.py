"""Response compression middleware.

Gzip-encodes compressible responses for clients that accept it.
Streaming responses are compressed chunk by chunk with a sync flush
after each one, so rendered HTML still reaches the client progressively.
"""

import gzip
import zlib
from collections.abc import AsyncIterator, Iterator

from warble.http.request import Request
from warble.http.response import Response, StreamingResponse
from warble.middleware.protocol import AnyResponse, Next

COMPRESSIBLE_TYPES: frozenset[str] = frozenset(
    {
        "application/javascript",
        "application/json",
        "application/manifest+json",
        "application/xml",
        "image/svg+xml",
        "image/x-icon",
    }
)


def is_compressible(content_type: str) -> bool:
    """Whether a media type benefits from compression."""
    media = content_type.split(";", 1)[0].strip().lower()
    return media.startswith("text/") or media in COMPRESSIBLE_TYPES or media.endswith("+json")


class Compression:
    """Gzip compression for every compressible response.

    Responses smaller than *threshold* bytes are sent as-is; a threshold
    of ``0`` compresses everything. Streaming responses have no known
    length and are always compressed.

    Skipped when the response already has a ``Content-Encoding``, asks
    for ``Cache-Control: no-transform``, or has no body (HEAD, 204, 304).
    Compressible responses always get ``Vary: Accept-Encoding`` so
    shared caches keep the variants apart.

    Usage::

        app.add_middleware(Compression(threshold=0))
    """

    __slots__ = ("_level", "_threshold")

    def __init__(self, *, threshold: int = 1024, level: int = 6) -> None:
        self._threshold = threshold
        self._level = level

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        response = await next(request)

        if not self._eligible(response):
            return response

        response = response.with_header("Vary", "Accept-Encoding")
        if request.is_head or not request.headers.accepts_encoding("gzip"):
            return response

        if isinstance(response, StreamingResponse):
            return (
                response.with_chunks(self._compress_stream(response.chunks))
                .without_header("Content-Length")
                .with_header("Content-Encoding", "gzip")
            )

        body = response.body_bytes
        if len(body) < self._threshold:
            return response
        return (
            response.with_body(gzip.compress(body, compresslevel=self._level))
            .without_header("Content-Length")
            .with_header("Content-Encoding", "gzip")
        )

    def _eligible(self, response: AnyResponse) -> bool:
        if response.status < 200 or response.status in (204, 304):
            return False
        if response.header("Content-Encoding") is not None:
            return False
        if "no-transform" in (response.header("Cache-Control") or ""):
            return False
        return is_compressible(response.content_type)

    async def _compress_stream(
        self, chunks: Iterator[str | bytes] | AsyncIterator[str | bytes]
    ) -> AsyncIterator[bytes]:
        compressor = zlib.compressobj(self._level, zlib.DEFLATED, 31)

        def encode(chunk: str | bytes) -> bytes:
            data = chunk.encode("utf-8") if isinstance(chunk, str) else chunk
            return compressor.compress(data) + compressor.flush(zlib.Z_SYNC_FLUSH)

        if isinstance(chunks, AsyncIterator):
            async for chunk in chunks:
                if chunk:
                    yield encode(chunk)
        else:
            for chunk in chunks:
                if chunk:
                    yield encode(chunk)
        yield compressor.flush()
