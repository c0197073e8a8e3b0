"""HTTP primitives: Request, Headers, Response, StreamingResponse."""

from warble.http.headers import Headers
from warble.http.request import Request
from warble.http.response import Response, StreamingResponse

__all__ = ["Headers", "Request", "Response", "StreamingResponse"]
