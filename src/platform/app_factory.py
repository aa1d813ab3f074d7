"""
Shared FastAPI App Factory

Builds the booking API for production (``src.main``) and for tests, which pass
their own lifespan and container.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.config.di import Container, container as default_container
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.observability.tracing import TracingConfig
from src.service.booking.driving_adapter.http_controller.booking_controller import (
    router as booking_router,
)
from src.service.booking.driving_adapter.http_controller.seller_order_controller import (
    router as seller_order_router,
)


def create_app(
    *,
    lifespan: Optional[Callable[[FastAPI], AbstractAsyncContextManager[Any]]] = None,
    container: Optional[Container] = None,
    title_suffix: str = '',
    description: str = 'Surplus food reservations and pickup lifecycle',
    service_name: str = 'surplus-booking',
    instrument: bool = True,
) -> FastAPI:
    """
    Create a configured FastAPI application.

    Args:
        lifespan: Async context manager for app lifespan (startup/shutdown)
        container: DI container exposed to ``UseCase.depends`` via ``app.state``
        title_suffix: Optional suffix for app title (e.g., " (Test)")
        description: App description
        service_name: Service name for tracing
        instrument: Attach OpenTelemetry FastAPI instrumentation
    """
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.container = container or default_container

    if instrument:
        TracingConfig(service_name=service_name).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    register_exception_handlers(app)

    app.include_router(booking_router, prefix='/api/bookings', tags=['booking'])
    app.include_router(seller_order_router, prefix='/api/seller/orders', tags=['seller'])

    _register_common_endpoints(app)

    return app


def _register_common_endpoints(app: FastAPI) -> None:
    @app.get('/health')
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {'status': 'healthy', 'service': 'Surplus Booking'}

    @app.get('/metrics')
    async def get_metrics() -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
