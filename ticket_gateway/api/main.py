"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from ticket_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from ticket_gateway.api.v1 import checkout, history, review
from ticket_gateway.infrastructure.database.session import init_db
from ticket_gateway.infrastructure.observability.logging import setup_logging
from ticket_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Ticket Checkout Gateway",
        description="Discount preview, payment window and transaction lifecycle for event tickets",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

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
    app.include_router(checkout.router, prefix="/v1", tags=["checkout"])
    app.include_router(review.router, prefix="/v1", tags=["review"])
    app.include_router(history.router, prefix="/v1", tags=["transactions"])

    return app


app = create_app()
