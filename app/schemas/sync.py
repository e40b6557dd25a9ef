from datetime import datetime
from typing import List, Optional, Set

from pydantic import BaseModel, Field, SerializeAsAny

from app.core.coercion import utcnow
from app.schemas.record import SyncedRecord


class MergedView(BaseModel):
    """
    Deduplicated, date-sorted projection of one collection.
    Owned by whoever hosts the collection; merge functions return new instances.
    """
    collection: str
    records: List[SerializeAsAny[SyncedRecord]] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)
    # ids whose current entry was delivered by the remote store
    remote_keys: Set[str] = Field(default_factory=set)

    def ids(self) -> List[str]:
        return [r.id for r in self.records]

    def get(self, record_id: str) -> Optional[SyncedRecord]:
        return next((r for r in self.records if r.id == str(record_id)), None)

    def __len__(self) -> int:
        return len(self.records)


class MergedViewResponse(BaseModel):
    collection: str
    count: int
    updated_at: datetime
    records: List[dict] = []


class SyncStatus(BaseModel):
    collection: str
    listening: bool = False
    record_count: int = 0
    local_batches: int = 0
    remote_batches: int = 0
    failed_remote_batches: int = 0
    last_local_merge: Optional[datetime] = None
    last_remote_merge: Optional[datetime] = None


class TenantSyncStatus(BaseModel):
    tenant_id: str
    collections: List[SyncStatus] = []
