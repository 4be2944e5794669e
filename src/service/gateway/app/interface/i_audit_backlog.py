from abc import ABC, abstractmethod


class IAuditBacklog(ABC):
    """Audit rows scheduled for a license key but not yet persisted."""

    @abstractmethod
    def pending_for(self, *, license_key: str) -> int:
        pass
