"""Security headers added to every response."""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.api.constants import DEFAULT_HSTS_MAX_AGE

_STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds anti-sniffing, anti-framing and HSTS headers.

    Message payloads are user-owned data, so responses are also marked as
    not cacheable.

    Args:
        app: The ASGI application to wrap.
        hsts_enabled: Whether to include the HSTS header.
        hsts_max_age: Max age for HSTS in seconds.
        hsts_include_subdomains: Whether to include subdomains in HSTS.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        hsts_enabled: bool = True,
        hsts_max_age: int = DEFAULT_HSTS_MAX_AGE,
        hsts_include_subdomains: bool = True,
    ) -> None:
        super().__init__(app)
        self.hsts_value: str | None = None
        if hsts_enabled:
            self.hsts_value = f"max-age={hsts_max_age}"
            if hsts_include_subdomains:
                self.hsts_value += "; includeSubDomains"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)

        for name, value in _STATIC_HEADERS.items():
            response.headers.setdefault(name, value)
        if self.hsts_value:
            response.headers["Strict-Transport-Security"] = self.hsts_value

        return response
