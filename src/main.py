"""
Production FastAPI Application

Guest API behind the license gate and audit recorder, backed by one asyncpg pool.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_config import intercept_std_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Gateway] Starting up...')
    intercept_std_logging()

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Gateway] Dependency injection wired')

    # Open the pool (fail-fast: the server does not start without a database)
    database = container.database()
    await database.open()

    Logger.base.info(f'✅ [Gateway] Ready on {settings.HOST}:{settings.PORT}')

    yield

    # uvicorn has already drained in-flight requests (timeout_graceful_shutdown)
    Logger.base.info('🛑 [Gateway] Shutting down...')

    # Let pending audit rows and usage counters land before the pool goes away
    await container.background_task_runner().drain(
        timeout=settings.BACKGROUND_DRAIN_TIMEOUT_SECONDS
    )

    await database.close()

    # Unwire DI
    container.unwire()

    Logger.base.info('👋 [Gateway] Shutdown complete')


# Create FastAPI app using shared factory
app = create_app(lifespan=lifespan)


def serve() -> None:
    intercept_std_logging()
    uvicorn.run(
        'src.main:app',
        host=settings.HOST,
        port=settings.PORT,
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_SECONDS,
        log_config=None,
    )


if __name__ == '__main__':
    serve()
