"""
License validation for every gated request.

Order of checks (first failure wins):
1. Key header present (401)
2. Key known (401)
3. Active, unexpired, caller IP allowed (403)
4. Daily quota not exhausted (429); audit rows still being written count too

On acceptance the usage counter update is spawned in the background and
never delays or fails the request.
"""

from datetime import datetime, timezone
from typing import Callable, NoReturn, Optional

from src.platform.exception.exceptions import (
    AuthError,
    AuthenticationError,
    ForbiddenError,
    QuotaExceededError,
    StorageError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.gateway_metrics import metrics
from src.platform.task.background_task_runner import BackgroundTaskRunner
from src.service.gateway.app.interface.i_audit_backlog import IAuditBacklog
from src.service.gateway.app.interface.i_license_repo import ILicenseRepo
from src.service.gateway.domain.entity.license_entity import License, LicenseDecision


VALIDATION_FAILURE_MESSAGE = 'Error validating API key.'
FORBIDDEN_MESSAGES = {
    LicenseDecision.INACTIVE: 'API key is inactive. Please contact administrator.',
    LicenseDecision.EXPIRED: 'API key has expired. Please renew your license.',
    LicenseDecision.IP_DENIED: 'API key is not authorized from this IP address.',
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _reject(outcome: LicenseDecision, error: AuthError) -> NoReturn:
    metrics.record_license_decision(outcome=outcome)
    raise error


class ValidateLicenseUseCase:
    def __init__(
        self,
        *,
        license_repo: ILicenseRepo,
        background_task_runner: BackgroundTaskRunner,
        audit_backlog: Optional[IAuditBacklog] = None,
        header_name: str = 'x-api-key',
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.license_repo = license_repo
        self.background_task_runner = background_task_runner
        self.audit_backlog = audit_backlog
        self.header_name = header_name
        self.clock = clock

    @Logger.io
    async def execute(self, *, license_key: Optional[str], client_ip: Optional[str]) -> License:
        if not license_key:
            _reject(
                LicenseDecision.MISSING,
                AuthenticationError(
                    f'API key is required. Please provide {self.header_name} header.'
                ),
            )

        try:
            api_license = await self._check(license_key=license_key, client_ip=client_ip)
        except StorageError as e:
            metrics.record_license_decision(outcome=LicenseDecision.ERROR)
            raise StorageError(VALIDATION_FAILURE_MESSAGE) from e

        metrics.record_license_decision(outcome=LicenseDecision.ACCEPTED)
        self.background_task_runner.spawn(
            self.license_repo.record_usage(license_key=license_key), label='license-usage'
        )
        return api_license

    async def _check(self, *, license_key: str, client_ip: Optional[str]) -> License:
        api_license = await self.license_repo.get_by_key(license_key=license_key)
        if api_license is None:
            _reject(LicenseDecision.INVALID, AuthenticationError('Invalid API key.'))

        decision = api_license.check_usable(now=self.clock(), client_ip=client_ip)
        if decision is not LicenseDecision.ACCEPTED:
            _reject(decision, ForbiddenError(FORBIDDEN_MESSAGES[decision]))

        if api_license.has_daily_quota:
            requests_today = await self.license_repo.count_requests_today(license_key=license_key)
            if self.audit_backlog is not None:
                requests_today += self.audit_backlog.pending_for(license_key=license_key)
            if api_license.quota_exhausted(requests_today=requests_today):
                _reject(
                    LicenseDecision.QUOTA,
                    QuotaExceededError(
                        f'Daily request limit of {api_license.max_requests_per_day} has been reached.'
                    ),
                )

        return api_license
