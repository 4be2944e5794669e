"""
Guest endpoints in two contract shapes; exactly one router is mounted per deployment.

- confirmation_router: /{confirmation_no}, multi-field update
- name_id_router: /{name_id}, single display-name update
"""

from typing import Optional

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.guest.app.command.rename_guest_use_case import RenameGuestUseCase
from src.service.guest.app.command.update_guest_use_case import UpdateGuestUseCase
from src.service.guest.app.query.get_guest_use_case import GetGuestUseCase
from src.service.guest.driving_adapter.http_controller.schema.guest_schema import (
    GuestRenameRequest,
    GuestRenameResponse,
    GuestResponse,
    GuestUpdateRequest,
    GuestUpdateResponse,
)


UPDATE_SUCCESS_MESSAGE = 'Guest information updated successfully'

confirmation_router = APIRouter()
name_id_router = APIRouter()


@confirmation_router.get('/{confirmation_no}', response_model=GuestResponse)
@Logger.io
async def get_guest_by_confirmation_no(
    confirmation_no: str,
    use_case: GetGuestUseCase = Depends(GetGuestUseCase.depends),
) -> GuestResponse:
    guest_id, guest = await use_case.by_confirmation_no(confirmation_no=confirmation_no)
    return GuestResponse(id=guest_id, name_id=guest.name_id, guest_name=guest.guest_name)


@confirmation_router.put('/{confirmation_no}', response_model=GuestUpdateResponse)
@Logger.io
async def update_guest_by_confirmation_no(
    confirmation_no: str,
    request: Optional[GuestUpdateRequest] = None,
    use_case: UpdateGuestUseCase = Depends(UpdateGuestUseCase.depends),
) -> GuestUpdateResponse:
    body = request or GuestUpdateRequest()
    result = await use_case.execute(
        confirmation_no=confirmation_no,
        first_name=body.first_name,
        last_name=body.last_name,
        address=body.address,
        doc_type=body.doc_type,
        doc_number=body.doc_number,
    )
    return GuestUpdateResponse(
        id=result.id,
        name_id=result.name_id,
        updated_fields=result.updated_fields,
        message=UPDATE_SUCCESS_MESSAGE,
    )


@name_id_router.get('/{name_id}', response_model=GuestResponse)
@Logger.io
async def get_guest_by_name_id(
    name_id: str,
    use_case: GetGuestUseCase = Depends(GetGuestUseCase.depends),
) -> GuestResponse:
    guest_id, guest = await use_case.by_name_id(name_id=name_id)
    return GuestResponse(id=guest_id, name_id=guest.name_id, guest_name=guest.guest_name)


@name_id_router.put('/{name_id}', response_model=GuestRenameResponse)
@Logger.io
async def rename_guest_by_name_id(
    name_id: str,
    request: Optional[GuestRenameRequest] = None,
    use_case: RenameGuestUseCase = Depends(RenameGuestUseCase.depends),
) -> GuestRenameResponse:
    body = request or GuestRenameRequest()
    result = await use_case.execute(name_id=name_id, guest_name=body.guest_name)
    return GuestRenameResponse(
        id=result.id,
        guest_name=result.guest_name or '',
        updated_fields=result.updated_fields,
        message=UPDATE_SUCCESS_MESSAGE,
    )
