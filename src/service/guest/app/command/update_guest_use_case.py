from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError, StorageError
from src.platform.logging.loguru_io import Logger
from src.service.guest.domain.entity.guest_entity import (
    GuestUpdate,
    GuestUpdateResult,
    parse_guest_identifier,
)


UPDATE_FAILURE_MESSAGE = 'An error occurred while updating guest information'


class UpdateGuestUseCase:
    """
    Update name fields and address of the guest behind a confirmation number.

    Flow (one unit of work):
    1. Resolve name_id from the confirmation number
    2. One UPDATE on `name` for the present name/document fields
    3. Update the existing `name_address` row when an address is given
       (no row is created when the guest has none)
    4. Commit; every failure path rolls back
    """

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
    async def execute(
        self,
        *,
        confirmation_no: Optional[str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        address: Optional[str] = None,
        doc_type: Optional[str] = None,
        doc_number: Optional[str] = None,
    ) -> GuestUpdateResult:
        guest_id = parse_guest_identifier(confirmation_no, label='confirmationNo')
        update = GuestUpdate.create(
            first_name=first_name,
            last_name=last_name,
            address=address,
            doc_type=doc_type,
            doc_number=doc_number,
        )

        try:
            async with self.uow_factory() as uow:
                name_id = await uow.guest_command_repo.find_name_id(confirmation_no=guest_id)
                if name_id is None:
                    raise NotFoundError(f'Guest with confirmation number {guest_id} not found')

                updated_fields: list[str] = []
                assignments = update.name_assignments()
                if assignments:
                    await uow.guest_command_repo.update_name_fields(
                        name_id=name_id, assignments=assignments
                    )
                    updated_fields.extend(
                        field for field in update.present_fields if field != 'address'
                    )

                if update.address is not None:
                    if await uow.guest_command_repo.address_exists(name_id=name_id):
                        await uow.guest_command_repo.update_address(
                            name_id=name_id, address=update.address
                        )
                        updated_fields.append('address')
                    else:
                        Logger.base.info(
                            f'📭 [Guest] No address on file for name_id {name_id}, address left unchanged'
                        )

                await uow.commit()
        except StorageError as e:
            raise StorageError(UPDATE_FAILURE_MESSAGE) from e

        return GuestUpdateResult(id=guest_id, name_id=name_id, updated_fields=updated_fields)
