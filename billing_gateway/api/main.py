"""FastAPI application factory"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from billing_gateway.api import legacy
from billing_gateway.api.errors import register_error_handlers
from billing_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from billing_gateway.api.v1 import billing, inquiry
from billing_gateway.config import settings
from billing_gateway.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    store = getattr(app.state, "cache_store", None)
    if store is not None:
        store.close()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        lifespan=lifespan,
        title="Billing Gateway",
        description="Signed upstream billing API gateway with cached subscriber inquiry",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "time": datetime.now(timezone.utc).isoformat(),
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # REST dialect
    app.include_router(billing.router, prefix="/api/v1", tags=["billing"])
    app.include_router(inquiry.router, prefix="/api/v1", tags=["inquiry"])
    app.include_router(inquiry.admin_router, prefix="/api/v1", tags=["inquiry-cache"])

    # Legacy GET-query dialect
    app.include_router(legacy.router, prefix="/otomax", tags=["legacy"])
    app.include_router(inquiry.admin_router, prefix="/otomax", tags=["legacy"])

    return app


app = create_app()
