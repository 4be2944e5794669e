from abc import ABC, abstractmethod

from src.service.gateway.domain.entity.audit_record_entity import AuditRecord


class IAuditLogRepo(ABC):
    @abstractmethod
    async def insert(self, *, record: AuditRecord) -> None:
        pass
