"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from nivi_budget.api.middleware import RequestIDMiddleware, MetricsMiddleware
from nivi_budget.api.v1 import budget, finance, history, obligations
from nivi_budget.infrastructure.observability.logging import setup_logging
from nivi_budget.config import settings
from nivi_budget.services.finance_store import FinanceSessionRegistry

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Nivi Budget Service",
        description="Income allocation, budget redistribution and expense ledger",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # One registry per app instance: in-memory finance state per signed-in user
    app.state.finance_sessions = FinanceSessionRegistry()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(finance.router, prefix="/v1", tags=["finance"])
    app.include_router(budget.router, prefix="/v1", tags=["budget"])
    app.include_router(obligations.router, prefix="/v1", tags=["obligations"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
