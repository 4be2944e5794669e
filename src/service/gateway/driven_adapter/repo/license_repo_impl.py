from typing import Optional

import asyncpg

from src.platform.database.asyncpg_gateway import SqlExecutor
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger
from src.service.gateway.app.interface.i_license_repo import ILicenseRepo
from src.service.gateway.domain.entity.license_entity import License, parse_allowed_ips


class LicenseRepoImpl(ILicenseRepo):
    def __init__(self, *, executor: SqlExecutor) -> None:
        self.executor = executor

    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> License:
        try:
            allowed_ips = parse_allowed_ips(row['allowed_ips'])
        except ValueError as e:
            Logger.base.error(f'❌ [License] Unparsable allowed_ips for license {row["license_id"]}: {e}')
            raise StorageError() from e

        return License(
            license_id=row['license_id'],
            license_key=row['license_key'],
            license_name=row['license_name'],
            is_active=bool(row['is_active']),
            expiry_date=row['expiry_date'],
            max_requests_per_day=row['max_requests_per_day'],
            allowed_ips=allowed_ips,
            total_requests=row['total_requests'] or 0,
            last_used_date=row['last_used_date'],
        )

    @Logger.io
    async def get_by_key(self, *, license_key: str) -> Optional[License]:
        row = await self.executor.fetchrow(
            """
            SELECT license_id, license_key, license_name, is_active, expiry_date,
                   max_requests_per_day, allowed_ips, total_requests, last_used_date
            FROM api_license
            WHERE license_key = $1
            """,
            license_key,
        )
        if not row:
            return None
        return self._row_to_entity(row)

    @Logger.io
    async def count_requests_today(self, *, license_key: str) -> int:
        count = await self.executor.fetchval(
            """
            SELECT COUNT(*)
            FROM api_request_log
            WHERE license_key = $1
              AND request_timestamp::date = current_date
            """,
            license_key,
        )
        return int(count or 0)

    @Logger.io
    async def record_usage(self, *, license_key: str) -> None:
        await self.executor.execute(
            """
            UPDATE api_license
            SET last_used_date = CURRENT_TIMESTAMP,
                total_requests = COALESCE(total_requests, 0) + 1
            WHERE license_key = $1
            """,
            license_key,
        )
