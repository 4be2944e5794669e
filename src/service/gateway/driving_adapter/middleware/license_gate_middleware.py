"""
License Gate (pure ASGI middleware)

Every HTTP request except the health check must carry a valid license key.
Rejections are answered here with the standard error envelope; accepted
requests continue with the license attached as `request.state.license`.
"""

from typing import Callable

from starlette.types import ASGIApp, Receive, Scope, Send

from src.platform.exception.exception_handlers import error_response
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.gateway_metrics import metrics
from src.service.gateway.app.command.validate_license_use_case import (
    VALIDATION_FAILURE_MESSAGE,
    ValidateLicenseUseCase,
)
from src.service.gateway.domain.entity.license_entity import LicenseDecision
from src.service.gateway.driving_adapter.middleware.asgi_scope import client_host, header_value


class LicenseGateMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        use_case_provider: Callable[[], ValidateLicenseUseCase],
        header_name: str,
        health_path: str,
    ) -> None:
        self.app = app
        self.use_case_provider = use_case_provider
        self.header_name = header_name
        self.health_path = health_path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http' or scope['path'] == self.health_path:
            await self.app(scope, receive, send)
            return

        try:
            use_case = self.use_case_provider()
            api_license = await use_case.execute(
                license_key=header_value(scope, self.header_name),
                client_ip=client_host(scope),
            )
        except CustomBaseError as e:
            response = error_response(status_code=e.status_code, message=e.message)
            await response(scope, receive, send)
            return
        except Exception as e:
            metrics.record_license_decision(outcome=LicenseDecision.ERROR)
            Logger.base.exception(f'💥 [License] Validation crashed: {type(e).__name__}: {e}')
            response = error_response(status_code=500, message=VALIDATION_FAILURE_MESSAGE)
            await response(scope, receive, send)
            return

        scope.setdefault('state', {})['license'] = api_license
        await self.app(scope, receive, send)
