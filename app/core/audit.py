from abc import ABC, abstractmethod
from typing import List
from app.schemas.audit import AuditLogEntry
import logging

logger = logging.getLogger(__name__)

class AuditRepository(ABC):
    @abstractmethod
    def save(self, entry: AuditLogEntry):
        pass

    @abstractmethod
    def get_all(self) -> List[AuditLogEntry]:
        pass

    def for_tenant(self, tenant_id: str) -> List[AuditLogEntry]:
        return [e for e in self.get_all() if e.tenant_id == tenant_id]

class InMemoryAuditRepository(AuditRepository):
    def __init__(self):
        self._storage: List[AuditLogEntry] = []

    def save(self, entry: AuditLogEntry):
        # Append-only
        self._storage.append(entry)
        logger.info(f"Audit: {entry.action_type.value} {entry.method} {entry.endpoint} tenant={entry.tenant_id} status={entry.status.value}")

    def get_all(self) -> List[AuditLogEntry]:
        return list(self._storage)

    def clear(self):
        self._storage.clear()

audit_repo = InMemoryAuditRepository()
