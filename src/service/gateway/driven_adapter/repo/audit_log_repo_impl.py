from src.platform.database.asyncpg_gateway import SqlExecutor
from src.platform.logging.loguru_io import Logger
from src.service.gateway.app.interface.i_audit_log_repo import IAuditLogRepo
from src.service.gateway.domain.entity.audit_record_entity import AuditRecord


class AuditLogRepoImpl(IAuditLogRepo):
    def __init__(self, *, executor: SqlExecutor) -> None:
        self.executor = executor

    @Logger.io
    async def insert(self, *, record: AuditRecord) -> None:
        await self.executor.execute(
            """
            INSERT INTO api_request_log (
                request_method, request_path, request_headers, request_body,
                response_status, response_body, request_timestamp, response_timestamp,
                duration_ms, client_ip, user_agent, license_key, confirmation_no,
                error_message
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
            """,
            record.method,
            record.path,
            record.headers,
            record.request_body,
            record.response_status,
            record.response_body,
            record.request_timestamp,
            record.response_timestamp,
            record.duration_ms,
            record.client_ip,
            record.user_agent,
            record.license_key,
            record.correlation_id,
            record.error_message,
        )
