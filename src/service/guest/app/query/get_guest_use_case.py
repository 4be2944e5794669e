from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError, StorageError
from src.platform.logging.loguru_io import Logger
from src.service.guest.app.interface.i_guest_query_repo import IGuestQueryRepo
from src.service.guest.domain.entity.guest_entity import GuestName, parse_guest_identifier


READ_FAILURE_MESSAGE = 'An error occurred while retrieving guest information'


class GetGuestUseCase:
    def __init__(self, *, guest_query_repo: IGuestQueryRepo) -> None:
        self.guest_query_repo = guest_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        guest_query_repo: IGuestQueryRepo = Depends(Provide[Container.guest_query_repo]),
    ) -> Self:
        return cls(guest_query_repo=guest_query_repo)

    @Logger.io
    async def by_confirmation_no(self, *, confirmation_no: Optional[str]) -> tuple[int, GuestName]:
        guest_id = parse_guest_identifier(confirmation_no)
        try:
            guest = await self.guest_query_repo.find_by_confirmation_no(confirmation_no=guest_id)
        except StorageError as e:
            raise StorageError(READ_FAILURE_MESSAGE) from e

        if not guest:
            raise NotFoundError(f'Guest with nameId {guest_id} not found')
        return guest_id, guest

    @Logger.io
    async def by_name_id(self, *, name_id: Optional[str]) -> tuple[int, GuestName]:
        guest_id = parse_guest_identifier(name_id)
        try:
            guest = await self.guest_query_repo.find_by_name_id(name_id=guest_id)
        except StorageError as e:
            raise StorageError(READ_FAILURE_MESSAGE) from e

        if not guest:
            raise NotFoundError(f'Guest with nameId {guest_id} not found')
        return guest_id, guest
