import logging
import re

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response

from .core.cache import cache_client
from .core.config import CORS_ORIGINS, DB_ENABLED, DRIVE_MODE, LOG_LEVEL
from .db import init_db
from .middleware import RateLimitMiddleware
from .migrations import ensure_schema
from .routes import admin, search
from .services.catalog import load_catalog

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Game Portal API", version="0.1.0")

_LOCAL_ORIGIN_REGEX = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$", re.IGNORECASE)


def _is_origin_allowed(origin: str) -> bool:
    if not origin:
        return False
    if "*" in CORS_ORIGINS or origin in CORS_ORIGINS:
        return True
    return bool(_LOCAL_ORIGIN_REGEX.match(origin))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Custom exception handler that adds CORS headers to all HTTP exceptions."""
    origin = request.headers.get("origin", "")
    response = JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
    if _is_origin_allowed(origin):
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


# Note: Middleware is executed in REVERSE order of addition.
# Order of execution: RateLimitMiddleware -> CORSMiddleware -> GZipMiddleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RateLimitMiddleware)


@app.on_event("startup")
def on_startup() -> None:
    if DB_ENABLED:
        init_db()
        ensure_schema()
    catalog = load_catalog()
    logger.info(f"Search ready (mode={DRIVE_MODE}, catalog={len(catalog)} titles)")


@app.on_event("shutdown")
def on_shutdown() -> None:
    cache_client.clear()


@app.get("/health")
def health_check():
    return {"status": "ok", "mode": DRIVE_MODE, "db_enabled": DB_ENABLED}


@app.head("/health")
def health_check_head():
    return Response(status_code=200)


app.include_router(search.router, prefix="/api", tags=["search"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
