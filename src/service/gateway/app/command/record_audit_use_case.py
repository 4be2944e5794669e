from collections import Counter

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.gateway_metrics import metrics
from src.platform.task.background_task_runner import BackgroundTaskRunner
from src.service.gateway.app.interface.i_audit_backlog import IAuditBacklog
from src.service.gateway.app.interface.i_audit_log_repo import IAuditLogRepo
from src.service.gateway.domain.entity.audit_record_entity import AuditRecord


class RecordAuditUseCase(IAuditBacklog):
    """
    Persist one audit row per completed request, off the response path.

    Failures are logged and counted; they never reach the caller and are
    never retried. Rows still in flight are counted per license key so the
    daily quota sees them before they reach the database.
    """

    def __init__(
        self, *, audit_log_repo: IAuditLogRepo, background_task_runner: BackgroundTaskRunner
    ) -> None:
        self.audit_log_repo = audit_log_repo
        self.background_task_runner = background_task_runner
        self._pending: Counter[str] = Counter()

    def pending_for(self, *, license_key: str) -> int:
        return self._pending[license_key]

    def schedule(self, *, record: AuditRecord) -> None:
        if record.license_key:
            self._pending[record.license_key] += 1
        self.background_task_runner.spawn(self._persist_scheduled(record=record), label='audit-log')

    async def _persist_scheduled(self, *, record: AuditRecord) -> bool:
        try:
            return await self.persist(record=record)
        finally:
            if record.license_key:
                self._pending[record.license_key] -= 1
                if self._pending[record.license_key] <= 0:
                    del self._pending[record.license_key]

    async def persist(self, *, record: AuditRecord) -> bool:
        try:
            await self.audit_log_repo.insert(record=record)
        except Exception as e:
            metrics.record_audit_write_failure()
            Logger.base.error(
                f'❌ [Audit] Failed to record {record.method} {record.path} '
                f'({record.response_status}): {type(e).__name__}: {e}'
            )
            return False
        return True
