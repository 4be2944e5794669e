from abc import ABC, abstractmethod
from typing import Optional

from src.service.gateway.domain.entity.license_entity import License


class ILicenseRepo(ABC):
    @abstractmethod
    async def get_by_key(self, *, license_key: str) -> Optional[License]:
        """License identified by `license_key`, or None when the key is unknown."""
        pass

    @abstractmethod
    async def count_requests_today(self, *, license_key: str) -> int:
        """Audit rows recorded for this key on the database's current calendar day."""
        pass

    @abstractmethod
    async def record_usage(self, *, license_key: str) -> None:
        """last_used_date = now, total_requests + 1."""
        pass
