"""
Shared FastAPI App Factory

Provides common app setup for production and test environments.

Request pipeline (outermost first):
CORS -> Audit Recorder -> License Gate -> exception handling -> routes
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, Literal, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.constant.route_constant import GUEST_BASE, METRICS
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.logging.loguru_io import Logger
from src.service.gateway.driving_adapter.middleware.audit_recorder_middleware import (
    AuditRecorderMiddleware,
)
from src.service.gateway.driving_adapter.middleware.license_gate_middleware import (
    LicenseGateMiddleware,
)
from src.service.guest.driving_adapter.http_controller.guest_controller import (
    confirmation_router,
    name_id_router,
)


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
    description: str = 'Guest lookup and update API over the reservation database',
    guest_contract: Optional[Literal['confirmation', 'name_id']] = None,
) -> FastAPI:
    """
    Create a configured FastAPI application.

    Args:
        lifespan: Async context manager for app lifespan (startup/shutdown)
        title_suffix: Optional suffix for app title (e.g., " (Test)")
        description: App description
        guest_contract: Guest route shape to mount; defaults to settings.GUEST_CONTRACT

    Returns:
        Configured FastAPI application
    """
    title = f'{settings.PROJECT_NAME}{title_suffix}'
    contract = guest_contract or settings.GUEST_CONTRACT

    app = FastAPI(
        title=title,
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Middlewares: the last one added runs first
    app.add_middleware(
        LicenseGateMiddleware,  # type: ignore
        use_case_provider=container.validate_license_use_case,
        header_name=settings.LICENSE_HEADER,
        health_path=settings.HEALTH_PATH,
    )
    app.add_middleware(
        AuditRecorderMiddleware,  # type: ignore
        use_case_provider=container.record_audit_use_case,
        header_name=settings.LICENSE_HEADER,
        max_request_body_bytes=settings.MAX_REQUEST_BODY_BYTES,
        audit_body_max_chars=settings.AUDIT_BODY_MAX_CHARS,
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['GET', 'PUT', 'OPTIONS'],
        allow_headers=['Content-Type', settings.LICENSE_HEADER],
    )

    # Register exception handlers
    register_exception_handlers(app)

    # Exactly one guest contract per deployment
    guest_router = confirmation_router if contract == 'confirmation' else name_id_router
    app.include_router(guest_router, prefix=GUEST_BASE, tags=['guest'])
    Logger.base.info(f'🧭 [App] Guest routes mounted with the "{contract}" contract')

    # Register common endpoints
    _register_common_endpoints(app)

    return app


def _register_common_endpoints(app: FastAPI) -> None:
    """Register health and metrics endpoints."""

    @app.get(settings.HEALTH_PATH)
    async def health_check() -> dict[str, str]:
        """Health check endpoint, exempt from license checks."""
        return {'status': 'ok'}

    @app.get(METRICS)
    async def get_metrics() -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
