from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..core.cache import cache_client
from ..core.config import (
    CORS_ORIGINS,
    RATE_LIMIT_MAX,
    RATE_LIMIT_WINDOW_SECONDS,
    TRUST_PROXY_HEADERS,
)

_EXEMPT_PATHS = ("/health",)


def _client_key(request: Request, trust_proxy: bool = False) -> str:
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        if forwarded:
            return forwarded.split(",", 1)[0].strip()
    return request.client.host if request.client else "unknown"


def _add_cors_headers(response: JSONResponse, request: Request) -> JSONResponse:
    """Add CORS headers to error responses."""
    origin = request.headers.get("origin", "")
    if origin in CORS_ORIGINS or "*" in CORS_ORIGINS:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        limit: int = RATE_LIMIT_MAX,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        cache=cache_client,
        trust_proxy: bool = TRUST_PROXY_HEADERS,
    ):
        super().__init__(app)
        self.limit = limit
        self.window_seconds = window_seconds
        self.cache = cache
        self.trust_proxy = trust_proxy

    async def dispatch(self, request: Request, call_next):
        # Skip rate limiting for preflight OPTIONS requests
        if request.method == "OPTIONS" or self.limit <= 0:
            return await call_next(request)
        if request.url.path.startswith(_EXEMPT_PATHS):
            return await call_next(request)

        allowed = self.cache.check_rate_limit(
            f"ratelimit:{_client_key(request, self.trust_proxy)}",
            self.limit,
            window_seconds=self.window_seconds,
        )
        if not allowed:
            response = JSONResponse(
                status_code=429,
                content={"detail": "Too many requests"},
            )
            response.headers["Retry-After"] = str(self.window_seconds)
            return _add_cors_headers(response, request)

        return await call_next(request)
