"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from spendmart_core.api.middleware import RequestIDMiddleware, MetricsMiddleware
from spendmart_core.api.v1 import accounts, dues, purchases
from spendmart_core.infrastructure.observability.logging import setup_logging
from spendmart_core.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="SpendMart Core",
        description="Purchases, wallet and credit ledger, installment dues",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(purchases.router, prefix="/v1", tags=["purchases"])
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(dues.router, prefix="/v1", tags=["dues"])

    return app


app = create_app()
