"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from recurring_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from recurring_engine.api.v1 import batches, reminders, rules
from recurring_engine.infrastructure.observability.logging import setup_logging
from recurring_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Recurring Transaction Engine",
        description="Recurring rule scheduling, execution and reminder service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
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
    app.include_router(rules.router, prefix="/v1", tags=["rules"])
    app.include_router(batches.router, prefix="/v1", tags=["batches"])
    app.include_router(reminders.router, prefix="/v1", tags=["reminders"])

    return app


app = create_app()
