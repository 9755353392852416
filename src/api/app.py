"""FastAPI application factory for the decision API (browser extension backend)."""

from __future__ import annotations

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from config.settings import settings
from src.api.middleware import RequestLogMiddleware

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)

API_VERSION = "0.1.0"


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Moon Signal Decision API",
        version=API_VERSION,
        docs_url="/api/docs" if settings.api_debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.api_debug else None,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(RequestLogMiddleware)

    # CORS: the extension calls from chrome-extension:// and dexscreener.com pages
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Import and include routers
    from src.api.routers.convergence import router as convergence_router
    from src.api.routers.decision import router as decision_router
    from src.api.routers.health import router as health_router
    from src.api.routers.wallets import router as wallets_router

    app.include_router(health_router)
    app.include_router(decision_router)
    app.include_router(convergence_router)
    app.include_router(wallets_router)

    return app
