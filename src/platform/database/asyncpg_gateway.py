"""
asyncpg Database Gateway

Thin pooled-execute wrapper over the reservation database:
- Explicit lifecycle: open() creates the pool, close() drains it
  (terminating it if draining exceeds the close timeout)
- fetch/fetchrow/fetchval return rows, execute returns the affected-row count
- Every driver/network/timeout failure surfaces as StorageError; the driver
  detail is logged here and never leaves the process

Connections are acquired per call (or per unit of work) and released on
every exit path.
"""

import asyncio
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any, Optional, Protocol

import anyio
import asyncpg

from src.platform.config.core_setting import Settings
from src.platform.exception.exceptions import StorageError
from src.platform.logging.loguru_io import Logger


DRIVER_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


@contextmanager
def translate_driver_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except DRIVER_ERRORS as e:
        Logger.base.error(f'❌ [DB] {operation} failed: {type(e).__name__}: {e}')
        raise StorageError() from e


def affected_rows(status: str) -> int:
    """asyncpg command tag ('UPDATE 3', 'INSERT 0 1') to row count."""
    try:
        return int(status.rsplit(' ', 1)[-1])
    except (ValueError, AttributeError):
        return 0


class SqlExecutor(Protocol):
    async def fetch(self, sql: str, *args: Any) -> list[asyncpg.Record]: ...

    async def fetchrow(self, sql: str, *args: Any) -> Optional[asyncpg.Record]: ...

    async def fetchval(self, sql: str, *args: Any) -> Any: ...

    async def execute(self, sql: str, *args: Any) -> int: ...


class ConnectionExecutor:
    """SqlExecutor bound to one already-acquired connection (used inside a unit of work)."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *args: Any) -> list[asyncpg.Record]:
        with translate_driver_errors('fetch'):
            return await self._conn.fetch(sql, *args)

    async def fetchrow(self, sql: str, *args: Any) -> Optional[asyncpg.Record]:
        with translate_driver_errors('fetchrow'):
            return await self._conn.fetchrow(sql, *args)

    async def fetchval(self, sql: str, *args: Any) -> Any:
        with translate_driver_errors('fetchval'):
            return await self._conn.fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> int:
        with translate_driver_errors('execute'):
            return affected_rows(await self._conn.execute(sql, *args))


class AsyncpgGateway:
    def __init__(
        self,
        *,
        dsn: str,
        min_size: int,
        max_size: int,
        acquire_timeout: float,
        command_timeout: float,
        max_inactive_lifetime: float,
        close_timeout: float,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._acquire_timeout = acquire_timeout
        self._command_timeout = command_timeout
        self._max_inactive_lifetime = max_inactive_lifetime
        self._close_timeout = close_timeout
        self._pool: Optional[asyncpg.Pool] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> 'AsyncpgGateway':
        return cls(
            dsn=settings.DATABASE_DSN,
            min_size=settings.ASYNCPG_POOL_MIN_SIZE,
            max_size=settings.ASYNCPG_POOL_MAX_SIZE,
            acquire_timeout=settings.ASYNCPG_POOL_TIMEOUT,
            command_timeout=settings.ASYNCPG_POOL_COMMAND_TIMEOUT,
            max_inactive_lifetime=settings.ASYNCPG_POOL_MAX_INACTIVE_LIFETIME,
            close_timeout=settings.POOL_CLOSE_TIMEOUT_SECONDS,
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def open(self) -> None:
        if self._pool is not None:
            return

        Logger.base.info('🏊 [DB] Initializing asyncpg connection pool...')
        with translate_driver_errors('pool open'):
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
                max_inactive_connection_lifetime=self._max_inactive_lifetime,
                timeout=self._acquire_timeout,
            )
        Logger.base.info(
            f'✅ [DB] Pool ready (min={self._min_size}, max={self._max_size}, '
            f'acquire_timeout={self._acquire_timeout}s)'
        )

    async def close(self) -> None:
        if self._pool is None:
            return

        pool, self._pool = self._pool, None
        Logger.base.info('🏊 [DB] Closing asyncpg connection pool...')
        with anyio.move_on_after(self._close_timeout) as scope:
            await pool.close()

        if not scope.cancelled_caught:
            Logger.base.info('👋 [DB] Pool closed')
        else:
            Logger.base.error(
                f'❌ [DB] Pool did not close within {self._close_timeout}s, terminating connections'
            )
            pool.terminate()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        pool = self._pool
        if pool is None:
            Logger.base.error('❌ [DB] Connection requested before the pool was opened')
            raise StorageError()

        with translate_driver_errors('acquire'):
            conn = await pool.acquire(timeout=self._acquire_timeout)
        try:
            yield conn
        finally:
            try:
                await pool.release(conn)
            except DRIVER_ERRORS as e:
                Logger.base.error(f'❌ [DB] Error releasing connection: {e}')

    async def fetch(self, sql: str, *args: Any) -> list[asyncpg.Record]:
        async with self.connection() as conn:
            return await ConnectionExecutor(conn).fetch(sql, *args)

    async def fetchrow(self, sql: str, *args: Any) -> Optional[asyncpg.Record]:
        async with self.connection() as conn:
            return await ConnectionExecutor(conn).fetchrow(sql, *args)

    async def fetchval(self, sql: str, *args: Any) -> Any:
        async with self.connection() as conn:
            return await ConnectionExecutor(conn).fetchval(sql, *args)

    async def execute(self, sql: str, *args: Any) -> int:
        async with self.connection() as conn:
            return await ConnectionExecutor(conn).execute(sql, *args)
