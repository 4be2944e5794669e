"""
Guest Command Repository Interface

Writes guest profile fields. Implementations are bound to one unit of work;
every call runs on the unit's connection and inside its transaction.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IGuestCommandRepo(ABC):
    @abstractmethod
    async def find_name_id(self, *, confirmation_no: int) -> Optional[int]:
        """Resolve a confirmation number to the guest's name_id (None when unknown)."""
        pass

    @abstractmethod
    async def update_name_fields(self, *, name_id: int, assignments: dict[str, str]) -> int:
        """
        Update columns of the `name` row

        Args:
            name_id: Guest profile id
            assignments: Column -> new value; only whitelisted columns are accepted

        Returns:
            Number of rows updated
        """
        pass

    @abstractmethod
    async def address_exists(self, *, name_id: int) -> bool:
        pass

    @abstractmethod
    async def update_address(self, *, name_id: int, address: str) -> int:
        pass

    @abstractmethod
    async def update_display_name(self, *, name_id: int, display_name: str) -> int:
        pass
