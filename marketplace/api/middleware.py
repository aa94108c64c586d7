"""HTTP middleware for the marketplace API.

Two layers wrap every request:

- ``RequestIdMiddleware`` (outermost) tags the request with a correlation
  id, binds it into the structlog context and writes one access log line.
- ``ErrorHandlerMiddleware`` turns anything no exception handler claimed
  into a 500 in the standard error body.
"""

import time
import traceback
from collections.abc import Awaitable, Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from marketplace.api.errors import error_body

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

CallNext = Callable[[Request], Awaitable[Response]]


def _log_access(request: Request, status_code: int, started: float) -> None:
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    log = logger.warning if status_code >= 500 else logger.info
    log(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        duration_ms=elapsed_ms,
        client=request.client.host if request.client else None,
    )


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Correlate requests, responses and log lines by request id.

    A caller-supplied ``X-Request-ID`` is reused, otherwise a UUID4 is
    generated. The id is exposed on ``request.state.request_id`` for the
    error handlers and echoed back on the response.
    """

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            _log_access(request, status_code, started)
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for unexpected exceptions.

    Args:
        app: Wrapped ASGI application.
        debug: Attach the formatted traceback as ``stack``.
    """

    def __init__(self, app, debug: bool = False) -> None:
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=self._body(request),
            )

    def _body(self, request: Request) -> dict:
        body = error_body(
            "INTERNAL_ERROR",
            "An internal error occurred",
            {},
            getattr(request.state, "request_id", None),
        )
        if self.debug:
            body["stack"] = traceback.format_exc()
        return body


def setup_middleware(app: FastAPI, debug: bool = False) -> None:
    """Install the middleware stack.

    Starlette runs the last added middleware first, so the request id
    layer is added after the error layer to wrap it.

    Args:
        app: Application to configure.
        debug: Include tracebacks in 500 responses.
    """
    app.add_middleware(ErrorHandlerMiddleware, debug=debug)
    app.add_middleware(RequestIdMiddleware)
