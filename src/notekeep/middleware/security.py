"""Security headers middleware.

Learn: The API only ever serves JSON and captcha PNGs, never HTML, so
the header set is strict: no framing, no sniffing, no referrers and no
cross-origin embedding of responses. HSTS is added only when the request
arrived over HTTPS (directly or via a proxy's X-Forwarded-Proto).
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


def _is_https(request: Request) -> bool:
    forwarded = request.headers.get("X-Forwarded-Proto", "")
    return request.url.scheme == "https" or forwarded.lower() == "https"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, hsts: bool = True):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if self.hsts and _is_https(request):
            response.headers["Strict-Transport-Security"] = HSTS_VALUE
        return response
