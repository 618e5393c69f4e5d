"""
api/main.py -- FastAPI application entry point for the shopping mall backend.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan opens the mall store and the user store on startup and disposes
both on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.carts import router as carts_router
from api.routes.v1.catalog import router as catalog_router
from api.routes.v1.coupons import router as coupons_router
from api.routes.v1.orders import router as orders_router
from api.routes.v1.reviews import router as reviews_router
from api.routes.v1.sales import router as sales_router
from api.routes.v1.users import router as users_router
from api.routes.v1.wallet import router as wallet_router
from auth.dependencies import get_current_actor
from auth.models import Actor
from auth.store import UserStore
from core.config import get_settings
from mall.store import MallStore

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("shoppingmall.api")

settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores before the first request and dispose them on shutdown.

    Both stores read DATABASE_URL through get_settings(), so they share one
    database. Tests swap this lifespan for one that points both at an
    in-memory database.
    """
    logger.info("Shopping mall API starting up")
    app.state.mall = MallStore()
    app.state.user_store = UserStore()
    logger.info("Stores initialized")

    yield

    app.state.mall.close()
    app.state.user_store.close()
    logger.info("Shopping mall API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Shopping Mall API",
    description="Channels, sales, carts, orders, coupons, reviews and deposits for a multi-seller shopping mall.",
    version=VERSION,
    lifespan=lifespan,
    # The built-in docs are replaced below by versions that require a token.
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order a request should meet them: TrustedHost -> CORS ->
# SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])
app.include_router(catalog_router, prefix="/api/v1", tags=["Catalog"])
app.include_router(sales_router, prefix="/api/v1", tags=["Sales"])
app.include_router(carts_router, prefix="/api/v1", tags=["Carts"])
app.include_router(orders_router, prefix="/api/v1", tags=["Orders"])
app.include_router(coupons_router, prefix="/api/v1", tags=["Coupons"])
app.include_router(reviews_router, prefix="/api/v1", tags=["Reviews"])
app.include_router(wallet_router, prefix="/api/v1", tags=["Wallet"])


# ---------------------------------------------------------------------------
# Auth-protected API documentation
# ---------------------------------------------------------------------------


@app.get("/docs", include_in_schema=False)
async def docs(actor: Actor = Depends(get_current_actor)):
    """Swagger UI -- any authenticated actor."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title="Shopping Mall API")


@app.get("/redoc", include_in_schema=False)
async def redoc(actor: Actor = Depends(get_current_actor)):
    return get_redoc_html(openapi_url="/openapi.json", title="Shopping Mall API")


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler answers with the same ErrorResponse envelope.
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with Retry-After. slowapi keeps the wait on exc.retry_after when it knows it."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPException in the error envelope.

    Routes raise with detail=ErrorDetail(...).model_dump(); that dict becomes
    the error field as-is. Headers set on the exception (Cache-Control on a
    failed login, for one) are passed through.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected errors. The traceback goes to the log, never to the client."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined here rather than in a router and never rate limited, so load
# balancers can always reach it.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
