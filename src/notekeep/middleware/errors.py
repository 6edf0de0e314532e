"""Unhandled-error middleware — the 500 envelope, inside the middleware stack.

Learn: Starlette serves handlers for bare `Exception` from its outermost
ServerErrorMiddleware, i.e. after every user middleware has already
been unwound by the exception. Converting the exception here, as the
innermost middleware, makes the 500 an ordinary response that the
outer middlewares log and decorate with the request id and security
headers.

The registered Exception handler in main.py stays as a backstop for
failures raised by the middlewares themselves.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notekeep.schemas.envelope import fail

logger = structlog.get_logger()


def unexpected_error_response(exc: Exception, expose_details: bool) -> JSONResponse:
    message = str(exc) if expose_details and str(exc) else "Internal server error"
    return JSONResponse(status_code=500, content=fail(message, "server_error"))


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, expose_details: bool = False):
        super().__init__(app)
        self.expose_details = expose_details

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "request.unhandled_error",
                path=request.url.path,
                method=request.method,
            )
            return unexpected_error_response(exc, self.expose_details)
