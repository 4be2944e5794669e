from typing import Optional

import attrs

from src.platform.exception.exceptions import ValidationError


# Request field -> `name` column; address lives in `name_address`
NAME_COLUMNS: dict[str, str] = {
    'first_name': 'first',
    'last_name': 'last',
    'doc_type': 'id_type',
    'doc_number': 'id_number',
}
UPDATABLE_FIELDS = ('first_name', 'last_name', 'address', 'doc_type', 'doc_number')
REQUIRED_NON_EMPTY = ('first_name', 'last_name')


def parse_guest_identifier(raw: Optional[str], *, label: str = 'nameId') -> int:
    """Path segment -> integer identifier. Raises ValidationError (400) before any storage access."""
    text = str(raw).strip() if raw is not None else ''
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f'{label} must be a valid numeric value') from None


def _trim(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


@attrs.define(frozen=True)
class GuestName:
    """Display projection of one guest attached to a reservation."""

    name_id: int
    guest_name: str


@attrs.define(frozen=True)
class GuestUpdate:
    first_name: Optional[str] = attrs.field(default=None, converter=_trim)
    last_name: Optional[str] = attrs.field(default=None, converter=_trim)
    address: Optional[str] = attrs.field(default=None, converter=_trim)
    doc_type: Optional[str] = attrs.field(default=None, converter=_trim)
    doc_number: Optional[str] = attrs.field(default=None, converter=_trim)

    @classmethod
    def create(
        cls,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        address: Optional[str] = None,
        doc_type: Optional[str] = None,
        doc_number: Optional[str] = None,
    ) -> 'GuestUpdate':
        update = cls(
            first_name=first_name,
            last_name=last_name,
            address=address,
            doc_type=doc_type,
            doc_number=doc_number,
        )

        # Blank values alone do not count as an update
        if not any(getattr(update, field) for field in UPDATABLE_FIELDS):
            raise ValidationError(
                'At least one field must be provided for update '
                f'({", ".join(UPDATABLE_FIELDS)})'
            )
        for field in REQUIRED_NON_EMPTY:
            if getattr(update, field) == '':
                raise ValidationError(f'{field} must not be empty')

        return update

    @property
    def present_fields(self) -> list[str]:
        return [field for field in UPDATABLE_FIELDS if getattr(self, field) is not None]

    def name_assignments(self) -> dict[str, str]:
        """`name` column -> new value for every present name-table field."""
        return {
            column: getattr(self, field)
            for field, column in NAME_COLUMNS.items()
            if getattr(self, field) is not None
        }


def normalize_display_name(guest_name: Optional[str]) -> str:
    if guest_name is None:
        raise ValidationError('guestName is required')
    trimmed = guest_name.strip()
    if not trimmed:
        raise ValidationError('guestName must not be empty')
    return trimmed


@attrs.define(frozen=True)
class GuestUpdateResult:
    id: int
    name_id: int
    updated_fields: list[str]
    guest_name: Optional[str] = None
