from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GuestUpdateRequest(BaseModel):
    model_config = ConfigDict(
        coerce_numbers_to_str=True,
        json_schema_extra={
            'examples': [
                {'first_name': 'Jane', 'last_name': 'Doe'},
                {'address': '1 Harbour Road', 'doc_type': 'PASSPORT', 'doc_number': 'X1234567'},
            ]
        },
    )

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address: Optional[str] = None
    doc_type: Optional[str] = None
    doc_number: Optional[str] = None


class GuestRenameRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        json_schema_extra={'example': {'guestName': 'Jane Doe'}},
    )

    guest_name: Optional[str] = None


class GuestResponse(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={'example': {'id': 123456, 'nameId': 98765, 'guestName': 'Jane Doe'}},
    )

    id: int
    name_id: int
    guest_name: str


class GuestUpdateResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    name_id: int
    updated_fields: List[str]
    message: str


class GuestRenameResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    guest_name: str
    updated_fields: List[str]
    message: str
