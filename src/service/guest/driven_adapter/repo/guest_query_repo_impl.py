"""
Guest Query Repository Implementation

Read-only lookups over reservation_name JOIN name, one pooled connection per call.
"""

from typing import Optional

import asyncpg

from src.platform.database.asyncpg_gateway import SqlExecutor
from src.platform.logging.loguru_io import Logger
from src.service.guest.app.interface.i_guest_query_repo import IGuestQueryRepo
from src.service.guest.domain.entity.guest_entity import GuestName


class GuestQueryRepoImpl(IGuestQueryRepo):
    def __init__(self, *, executor: SqlExecutor) -> None:
        self.executor = executor

    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> GuestName:
        return GuestName(name_id=row['name_id'], guest_name=row['guest_name'])

    @Logger.io
    async def find_by_confirmation_no(self, *, confirmation_no: int) -> Optional[GuestName]:
        # No ordering is defined for reservations sharing one confirmation number;
        # fetch two rows only to flag that case
        rows = await self.executor.fetch(
            """
            SELECT nam.name_id,
                   concat(nam.first, ' ', nam.last) AS guest_name
            FROM reservation_name res
            JOIN name nam ON nam.name_id = res.name_id
            WHERE res.confirmation_no = $1
            LIMIT 2
            """,
            confirmation_no,
        )
        if not rows:
            return None
        if len({row['name_id'] for row in rows}) > 1:
            Logger.base.warning(
                f'⚠️ [Guest] Confirmation {confirmation_no} maps to several guests; using the first row'
            )
        return self._row_to_entity(rows[0])

    @Logger.io
    async def find_by_name_id(self, *, name_id: int) -> Optional[GuestName]:
        row = await self.executor.fetchrow(
            """
            SELECT nam.name_id,
                   COALESCE(NULLIF(nam.display_name, ''),
                            concat(nam.first, ' ', nam.last)) AS guest_name
            FROM reservation_name res
            JOIN name nam ON nam.name_id = res.name_id
            WHERE res.name_id = $1
            LIMIT 1
            """,
            name_id,
        )
        if not row:
            return None
        return self._row_to_entity(row)
