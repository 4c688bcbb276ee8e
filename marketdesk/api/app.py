"""API application factory."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from marketdesk.core.config import settings
from marketdesk.core.exceptions import register_exception_handlers
from marketdesk.core.logging import get_logger, request_id_var, setup_logging
from marketdesk.jobs import AlertScheduler
from marketdesk.services.dashboard import close_dashboard, get_dashboard

from .routes import alerts, edgar, health, market


logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the alert schedule with the API and release clients on shutdown."""
    setup_logging()
    dashboard = get_dashboard()

    scheduler = None
    if settings.alerts_enabled:
        scheduler = AlertScheduler(
            dashboard.evaluator, interval_seconds=settings.alert_check_interval_seconds
        )
        await scheduler.start()
    else:
        logger.info("Alert scheduler disabled via ALERTS_ENABLED=false")
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        await scheduler.stop()
    await close_dashboard()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add request ID to all requests for tracing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request_id_var.set(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request by path only (query strings may carry keys)."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.monotonic()
        response = await call_next(request)
        duration = time.monotonic() - start_time

        path = request.url.path
        logger.info(
            f"{request.method} {path} -> {response.status_code} ({duration:.3f}s)",
            extra={
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": int(duration * 1000),
            },
        )
        return response


def create_api_app() -> FastAPI:
    """Create and configure the API application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Local market data and SEC filings service for the desktop dashboard",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Order matters - first added is outermost
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # The desktop shell loads its UI from a local origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["null", "http://localhost", "http://127.0.0.1"],
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(market.router, prefix="/api/market", tags=["Market Data"])
    app.include_router(edgar.router, prefix="/api/edgar", tags=["SEC EDGAR"])
    app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"])

    return app
