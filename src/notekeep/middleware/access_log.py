"""Request context + access log middleware.

Learn: One middleware per request does two things:
1. Picks the request id (incoming X-Request-ID, or a fresh UUID) and
   binds it, with method and path, to structlog's contextvars, so every
   event logged while handling the request carries them. The id is
   echoed back in the X-Request-ID response header.
2. Writes one "http.request" line when the response is ready, at a
   level that follows the status class (5xx error, 4xx warning, else info).

Bodies, headers and query strings are never logged: they carry
passwords, tokens and captcha answers.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger("notekeep.access")

REQUEST_ID_HEADER = "X-Request-ID"


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            # Raised past UnhandledErrorMiddleware (i.e. by another middleware)
            logger.error(
                "http.request",
                status=500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                client=request.client.host if request.client else None,
            )
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "http.request",
            status=response.status_code,
            duration_ms=duration_ms,
            client=request.client.host if request.client else None,
        )
        return response
