from abc import ABC, abstractmethod
from typing import Optional

from src.service.guest.domain.entity.guest_entity import GuestName


class IGuestQueryRepo(ABC):
    @abstractmethod
    async def find_by_confirmation_no(self, *, confirmation_no: int) -> Optional[GuestName]:
        """
        Guest attached to a reservation, name rendered as "<first> <last>"

        Returns:
            First matching guest, or None when the reservation has no guest
        """
        pass

    @abstractmethod
    async def find_by_name_id(self, *, name_id: int) -> Optional[GuestName]:
        """
        Guest by profile id, preferring the stored display name over "<first> <last>"

        Returns:
            GuestName, or None when no reservation references the profile
        """
        pass
