from typing import Optional

from src.platform.database.asyncpg_gateway import SqlExecutor
from src.platform.logging.loguru_io import Logger
from src.service.guest.app.interface.i_guest_command_repo import IGuestCommandRepo
from src.service.guest.domain.entity.guest_entity import NAME_COLUMNS


WRITABLE_NAME_COLUMNS = frozenset(NAME_COLUMNS.values())


class GuestCommandRepoImpl(IGuestCommandRepo):
    """Bound to a unit of work's connection; never commits on its own."""

    def __init__(self, *, executor: SqlExecutor) -> None:
        self.executor = executor

    @Logger.io
    async def find_name_id(self, *, confirmation_no: int) -> Optional[int]:
        rows = await self.executor.fetch(
            """
            SELECT name_id
            FROM reservation_name
            WHERE confirmation_no = $1
            LIMIT 2
            """,
            confirmation_no,
        )
        if not rows:
            return None
        if len({row['name_id'] for row in rows}) > 1:
            Logger.base.warning(
                f'⚠️ [Guest] Confirmation {confirmation_no} maps to several guests; updating the first row'
            )
        return rows[0]['name_id']

    @Logger.io
    async def update_name_fields(self, *, name_id: int, assignments: dict[str, str]) -> int:
        unknown = set(assignments) - WRITABLE_NAME_COLUMNS
        if unknown:
            raise ValueError(f'Columns not writable: {sorted(unknown)}')
        if not assignments:
            return 0

        columns = list(assignments)
        set_clause = ', '.join(f'{column} = ${i}' for i, column in enumerate(columns, start=1))
        return await self.executor.execute(
            f'UPDATE name SET {set_clause} WHERE name_id = ${len(columns) + 1}',
            *(assignments[column] for column in columns),
            name_id,
        )

    @Logger.io
    async def address_exists(self, *, name_id: int) -> bool:
        return bool(
            await self.executor.fetchval(
                'SELECT EXISTS (SELECT 1 FROM name_address WHERE name_id = $1)',
                name_id,
            )
        )

    @Logger.io
    async def update_address(self, *, name_id: int, address: str) -> int:
        return await self.executor.execute(
            'UPDATE name_address SET address1 = $1 WHERE name_id = $2',
            address,
            name_id,
        )

    @Logger.io
    async def update_display_name(self, *, name_id: int, display_name: str) -> int:
        return await self.executor.execute(
            'UPDATE name SET display_name = $1 WHERE name_id = $2',
            display_name,
            name_id,
        )
