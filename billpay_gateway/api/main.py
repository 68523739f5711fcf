"""FastAPI application factory"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from billpay_gateway.api import bill_payment
from billpay_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from billpay_gateway.api.v1 import sessions
from billpay_gateway.application.sessions import SessionStore
from billpay_gateway.domain.exceptions import DomainException, GatewayFailureError
from billpay_gateway.infrastructure.observability.logging import setup_logging
from billpay_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Render domain errors as {"error": message}"""
    status_code = exc.status_code
    if isinstance(exc, GatewayFailureError) and exc.upstream_status and exc.upstream_status >= 400:
        status_code = exc.upstream_status

    logging.warning(
        f"Request failed: {exc.message}",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "status_code": status_code},
    )
    return JSONResponse(status_code=status_code, content={"error": exc.message})


def create_app(session_store: SessionStore | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Bill Payment Gateway",
        description="Account balance lookup and full-balance bill payment",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.session_store = session_store or SessionStore()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(bill_payment.router, prefix="/api", tags=["bill-payment"])
    app.include_router(sessions.router, prefix="/v1", tags=["sessions"])

    return app


app = create_app()
