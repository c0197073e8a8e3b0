"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> AnyResponse

Built-in middleware:
    Compression -- Gzip for compressible responses, streaming-aware
    Favicon -- Serve /favicon.ico from a fixed file
    StaticFiles -- Serve a directory or a single file under a URL prefix
"""

from warble.middleware.compression import Compression
from warble.middleware.favicon import Favicon
from warble.middleware.protocol import AnyResponse, Middleware, Next
from warble.middleware.static import StaticFiles, serve

__all__ = [
    "AnyResponse",
    "Compression",
    "Favicon",
    "Middleware",
    "Next",
    "StaticFiles",
    "serve",
]
