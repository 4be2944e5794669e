"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.asyncpg_gateway import AsyncpgGateway
from src.platform.database.unit_of_work import AsyncpgUnitOfWork
from src.platform.task.background_task_runner import BackgroundTaskRunner
from src.service.gateway.app.command.record_audit_use_case import RecordAuditUseCase
from src.service.gateway.app.command.validate_license_use_case import ValidateLicenseUseCase
from src.service.gateway.driven_adapter.repo.audit_log_repo_impl import AuditLogRepoImpl
from src.service.gateway.driven_adapter.repo.license_repo_impl import LicenseRepoImpl
from src.service.guest.driven_adapter.repo.guest_query_repo_impl import GuestQueryRepoImpl


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database gateway (pool opened/closed by main.py lifespan)
    database = providers.Singleton(AsyncpgGateway.from_settings, settings=config_service)

    # Fire-and-forget writes (audit rows, license usage), drained at shutdown
    background_task_runner = providers.Singleton(BackgroundTaskRunner)

    # One unit of work per guest update
    unit_of_work = providers.Factory(AsyncpgUnitOfWork, gateway=database)

    # Repositories (stateless - one pooled connection per call)
    license_repo = providers.Singleton(LicenseRepoImpl, executor=database)
    audit_log_repo = providers.Singleton(AuditLogRepoImpl, executor=database)
    guest_query_repo = providers.Singleton(GuestQueryRepoImpl, executor=database)

    # Gateway use cases (resolved by the ASGI middlewares)
    record_audit_use_case = providers.Singleton(
        RecordAuditUseCase,
        audit_log_repo=audit_log_repo,
        background_task_runner=background_task_runner,
    )
    validate_license_use_case = providers.Singleton(
        ValidateLicenseUseCase,
        license_repo=license_repo,
        background_task_runner=background_task_runner,
        audit_backlog=record_audit_use_case,
        header_name=config_service.provided.LICENSE_HEADER,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
