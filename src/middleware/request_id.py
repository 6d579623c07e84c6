"""Request ID middleware for tracing one analysis across log lines."""

import uuid
from typing import Callable

import logfire
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a request ID to every request.

    The ID is taken from the incoming header when the caller supplies one,
    stored on ``request.state.request_id``, bound to a Logfire span around
    the handler and echoed back in the response header.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex
        request.state.request_id = request_id

        with logfire.span(
            "{method} {path}",
            method=request.method,
            path=request.url.path,
            request_id=request_id,
        ):
            response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response
