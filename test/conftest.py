"""
Test Configuration and Fixtures

This module provides:
- Environment setup before application modules read settings
- In-memory fakes for the license, audit and guest repositories and the unit of work
- httpx AsyncClient fixtures over the real ASGI app, one per guest contract

Architecture:
- Unit tests (test/**/unit/): build use cases directly with AsyncMock collaborators
- API tests (test/**/api/): run the full middleware pipeline with container overrides
"""

# =============================================================================
# Environment setup MUST happen before any application imports
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('DEBUG', 'false')
    os.environ.setdefault('DEPLOY_ENV', 'test')


_early_setup_test_environment()

from collections.abc import AsyncIterator, Callable  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Optional  # noqa: E402

from dependency_injector import providers  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.platform.app_factory import create_app  # noqa: E402
from src.platform.config.di import container  # noqa: E402
from src.platform.config.wire_modules import WIRE_MODULES  # noqa: E402
from src.platform.database.unit_of_work import AbstractUnitOfWork  # noqa: E402
from src.service.gateway.app.interface.i_audit_log_repo import IAuditLogRepo  # noqa: E402
from src.service.gateway.app.interface.i_license_repo import ILicenseRepo  # noqa: E402
from src.service.gateway.domain.entity.audit_record_entity import AuditRecord  # noqa: E402
from src.service.gateway.domain.entity.license_entity import License  # noqa: E402
from src.service.guest.app.interface.i_guest_command_repo import IGuestCommandRepo  # noqa: E402
from src.service.guest.app.interface.i_guest_query_repo import IGuestQueryRepo  # noqa: E402
from src.service.guest.domain.entity.guest_entity import GuestName  # noqa: E402


VALID_KEY = 'valid-key'
API_KEY_HEADER = 'x-api-key'
CLIENT_IP = '127.0.0.1'


# =============================================================================
# In-memory fakes
# =============================================================================
class FakeLicenseRepo(ILicenseRepo):
    def __init__(self) -> None:
        self.licenses: dict[str, License] = {}
        self.requests_today: dict[str, int] = {}
        self.usage: list[str] = []
        self.error: Optional[Exception] = None
        # When set, the daily count comes from persisted audit rows
        self.audit_log: Optional['FakeAuditLogRepo'] = None

    def add(self, **overrides: Any) -> License:
        values: dict[str, Any] = {
            'license_id': len(self.licenses) + 1,
            'license_key': VALID_KEY,
            'license_name': 'Front Desk Integration',
            'is_active': True,
            'expiry_date': datetime.now(timezone.utc) + timedelta(days=30),
        }
        values.update(overrides)
        api_license = License(**values)
        self.licenses[api_license.license_key] = api_license
        return api_license

    async def get_by_key(self, *, license_key: str) -> Optional[License]:
        if self.error:
            raise self.error
        return self.licenses.get(license_key)

    async def count_requests_today(self, *, license_key: str) -> int:
        if self.audit_log is not None:
            return sum(1 for r in self.audit_log.records if r.license_key == license_key)
        return self.requests_today.get(license_key, 0)

    async def record_usage(self, *, license_key: str) -> None:
        self.usage.append(license_key)


class FakeAuditLogRepo(IAuditLogRepo):
    def __init__(self) -> None:
        self.records: list[AuditRecord] = []
        self.error: Optional[Exception] = None

    async def insert(self, *, record: AuditRecord) -> None:
        if self.error:
            raise self.error
        self.records.append(record)


class FakeGuestStore:
    """reservation_name / name / name_address rows shared by the query and command fakes."""

    def __init__(self) -> None:
        self.reservations: dict[int, int] = {}  # confirmation_no -> name_id
        self.names: dict[int, dict[str, Optional[str]]] = {}
        self.addresses: dict[int, str] = {}
        self.error: Optional[Exception] = None

    def add_guest(
        self,
        *,
        confirmation_no: int,
        name_id: int,
        first: str,
        last: str,
        address: Optional[str] = None,
    ) -> None:
        self.reservations[confirmation_no] = name_id
        self.names[name_id] = {
            'first': first,
            'last': last,
            'display_name': None,
            'id_type': None,
            'id_number': None,
        }
        if address is not None:
            self.addresses[name_id] = address

    def check(self) -> None:
        if self.error:
            raise self.error


class FakeGuestQueryRepo(IGuestQueryRepo):
    def __init__(self, store: FakeGuestStore) -> None:
        self.store = store

    async def find_by_confirmation_no(self, *, confirmation_no: int) -> Optional[GuestName]:
        self.store.check()
        name_id = self.store.reservations.get(confirmation_no)
        if name_id is None:
            return None
        row = self.store.names[name_id]
        return GuestName(name_id=name_id, guest_name=f'{row["first"]} {row["last"]}')

    async def find_by_name_id(self, *, name_id: int) -> Optional[GuestName]:
        self.store.check()
        if name_id not in self.store.reservations.values():
            return None
        row = self.store.names[name_id]
        return GuestName(
            name_id=name_id,
            guest_name=row['display_name'] or f'{row["first"]} {row["last"]}',
        )


class FakeGuestCommandRepo(IGuestCommandRepo):
    def __init__(self, store: FakeGuestStore) -> None:
        self.store = store

    async def find_name_id(self, *, confirmation_no: int) -> Optional[int]:
        self.store.check()
        return self.store.reservations.get(confirmation_no)

    async def update_name_fields(self, *, name_id: int, assignments: dict[str, str]) -> int:
        self.store.check()
        if name_id not in self.store.names:
            return 0
        self.store.names[name_id].update(assignments)
        return 1

    async def address_exists(self, *, name_id: int) -> bool:
        self.store.check()
        return name_id in self.store.addresses

    async def update_address(self, *, name_id: int, address: str) -> int:
        self.store.check()
        self.store.addresses[name_id] = address
        return 1

    async def update_display_name(self, *, name_id: int, display_name: str) -> int:
        self.store.check()
        if name_id not in self.store.names:
            return 0
        self.store.names[name_id]['display_name'] = display_name
        return 1


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, *, guest_command_repo: IGuestCommandRepo, journal: list[str]) -> None:
        super().__init__()
        self.guest_command_repo = guest_command_repo
        self.journal = journal

    async def _commit(self) -> None:
        self.journal.append('commit')

    async def _rollback(self) -> None:
        self.journal.append('rollback')


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def license_repo() -> FakeLicenseRepo:
    repo = FakeLicenseRepo()
    repo.add()
    return repo


@pytest.fixture
def audit_log_repo() -> FakeAuditLogRepo:
    return FakeAuditLogRepo()


@pytest.fixture
def guest_store() -> FakeGuestStore:
    store = FakeGuestStore()
    store.add_guest(
        confirmation_no=123456, name_id=98765, first='Jane', last='Doe', address='1 Harbour Road'
    )
    store.add_guest(confirmation_no=222, name_id=555, first='John', last='Smith')
    return store


@pytest.fixture
def uow_journal() -> list[str]:
    return []


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield


@pytest.fixture
def client_factory(
    license_repo: FakeLicenseRepo,
    audit_log_repo: FakeAuditLogRepo,
    guest_store: FakeGuestStore,
    uow_journal: list[str],
) -> Callable[..., Any]:
    @asynccontextmanager
    async def _client(contract: str = 'confirmation') -> AsyncIterator[AsyncClient]:
        container.wire(modules=WIRE_MODULES)
        container.license_repo.override(providers.Object(license_repo))
        container.audit_log_repo.override(providers.Object(audit_log_repo))
        container.guest_query_repo.override(providers.Object(FakeGuestQueryRepo(guest_store)))
        container.unit_of_work.override(
            providers.Factory(
                FakeUnitOfWork,
                guest_command_repo=FakeGuestCommandRepo(guest_store),
                journal=uow_journal,
            )
        )
        container.reset_singletons()

        app = create_app(lifespan=_noop_lifespan, title_suffix=' (Test)', guest_contract=contract)
        transport = ASGITransport(app=app, client=(CLIENT_IP, 54321))
        try:
            async with AsyncClient(transport=transport, base_url='http://test') as client:
                yield client
        finally:
            await container.background_task_runner().drain(timeout=1.0)
            container.reset_override()
            container.reset_singletons()
            container.unwire()

    return _client


@pytest_asyncio.fixture
async def confirmation_client(client_factory: Callable[..., Any]) -> AsyncIterator[AsyncClient]:
    async with client_factory('confirmation') as client:
        yield client


@pytest_asyncio.fixture
async def name_id_client(client_factory: Callable[..., Any]) -> AsyncIterator[AsyncClient]:
    async with client_factory('name_id') as client:
        yield client


@pytest.fixture
def settle() -> Callable[[], Any]:
    """Wait for detached audit/usage writes spawned by the last request."""

    async def _settle() -> None:
        await container.background_task_runner().drain(timeout=1.0)

    return _settle
