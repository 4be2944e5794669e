from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError, StorageError
from src.platform.logging.loguru_io import Logger
from src.service.guest.app.command.update_guest_use_case import UPDATE_FAILURE_MESSAGE
from src.service.guest.domain.entity.guest_entity import (
    GuestUpdateResult,
    normalize_display_name,
    parse_guest_identifier,
)


class RenameGuestUseCase:
    """Single-field update: store the guest's display name by name_id."""

    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, name_id: Optional[str], guest_name: Optional[str]) -> GuestUpdateResult:
        guest_id = parse_guest_identifier(name_id)
        display_name = normalize_display_name(guest_name)

        try:
            async with self.uow_factory() as uow:
                affected = await uow.guest_command_repo.update_display_name(
                    name_id=guest_id, display_name=display_name
                )
                if affected == 0:
                    raise NotFoundError(f'Guest with nameId {guest_id} not found')
                await uow.commit()
        except StorageError as e:
            raise StorageError(UPDATE_FAILURE_MESSAGE) from e

        return GuestUpdateResult(
            id=guest_id,
            name_id=guest_id,
            updated_fields=['guestName'],
            guest_name=display_name,
        )
