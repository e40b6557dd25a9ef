from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from app.core.coercion import utcnow
from app.core.config import settings
from app.core.merge import drop_record, empty_view, merge_local, merge_remote
from app.core.normalize import record_type_for
from app.core.sources import InMemoryLocalStore, InMemoryRemoteSource, LocalStore, RemoteSource
from app.schemas.sync import MergedView, SyncStatus, TenantSyncStatus

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"Record '{record_id}' not found in '{collection}'")
        self.collection = collection
        self.record_id = record_id


class CollectionSync:
    """
    Hosts the merged view of one collection while it is active.

    `start()` acquires the local and remote subscriptions, `stop()` releases
    them and discards the view. Both callbacks run to completion before the
    next one is delivered, so the view is never mutated concurrently.
    """

    def __init__(self, collection: str, local_store: LocalStore, remote_source: RemoteSource):
        record_type_for(collection)
        self.collection = collection
        self._local = local_store
        self._remote = remote_source
        self._view = empty_view(collection)
        self._listening = False

        self._local_batches = 0
        self._remote_batches = 0
        self._failed_remote_batches = 0
        self._last_local_merge: Optional[datetime] = None
        self._last_remote_merge: Optional[datetime] = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @property
    def view(self) -> MergedView:
        return self._view

    @property
    def listening(self) -> bool:
        return self._listening

    def start(self) -> "CollectionSync":
        if self._listening:
            return self
        self._listening = True

        self._local.subscribe(self.collection, self.on_local_change)
        self.on_local_change(self._local.get_all(self.collection))

        try:
            self._remote.listen(self.collection, self.on_remote_change)
        except Exception as e:
            logger.error(f"Failed to start remote listener for '{self.collection}': {e}")

        logger.info(f"Sync started: {self.collection} ({len(self._view)} records)")
        return self

    def stop(self):
        if not self._listening:
            return
        self._listening = False
        self._remote.stop_listening(self.collection)
        self._local.unsubscribe(self.collection, self.on_local_change)
        self._view = empty_view(self.collection)
        logger.info(f"Sync stopped: {self.collection}")

    def on_local_change(self, records: List[Any]):
        if not self._listening:
            return
        self._view = merge_local(self._view, records)
        self._local_batches += 1
        self._last_local_merge = utcnow()
        logger.debug(f"Local batch merged into '{self.collection}': {len(self._view)} records")

    def on_remote_change(self, records: List[Any]):
        if not self._listening:
            return
        try:
            size = len(records) if isinstance(records, list) else 0
            logger.info(f"Remote batch for '{self.collection}': {size} records")
            self._view = merge_remote(self._view, records)
            self._remote_batches += 1
            self._last_remote_merge = utcnow()
        except Exception as e:
            self._failed_remote_batches += 1
            logger.error(f"Error processing remote batch for '{self.collection}': {e}")

    def delete(self, record_id: str):
        if self._view.get(record_id) is None:
            raise RecordNotFoundError(self.collection, record_id)
        self._view = drop_record(self._view, record_id)
        self._local.delete(self.collection, record_id)
        logger.info(f"Record deleted: {self.collection}/{record_id}")

    def status(self) -> SyncStatus:
        return SyncStatus(
            collection=self.collection,
            listening=self._listening,
            record_count=len(self._view),
            local_batches=self._local_batches,
            remote_batches=self._remote_batches,
            failed_remote_batches=self._failed_remote_batches,
            last_local_merge=self._last_local_merge,
            last_remote_merge=self._last_remote_merge,
        )


class SyncHub:
    """Per-tenant stores plus one CollectionSync per collection."""

    def __init__(
        self,
        tenant_id: str,
        local_store: Optional[LocalStore] = None,
        remote_source: Optional[RemoteSource] = None,
    ):
        self.tenant_id = tenant_id
        self.local_store = local_store or InMemoryLocalStore()
        self.remote_source = remote_source or InMemoryRemoteSource()
        self._syncs: Dict[str, CollectionSync] = {}

    def get(self, collection: str) -> CollectionSync:
        if collection not in self._syncs:
            self._syncs[collection] = CollectionSync(collection, self.local_store, self.remote_source)
        return self._syncs[collection]

    def statuses(self) -> TenantSyncStatus:
        for collection in settings.DEFAULT_COLLECTIONS:
            self.get(collection)
        return TenantSyncStatus(
            tenant_id=self.tenant_id,
            collections=[s.status() for s in self._syncs.values()],
        )

    def close(self):
        for sync in self._syncs.values():
            sync.stop()


class HubRegistry:
    def __init__(self):
        self._hubs: Dict[str, SyncHub] = {}

    def get(self, tenant_id: str) -> SyncHub:
        if tenant_id not in self._hubs:
            logger.info(f"Creating sync hub for tenant: {tenant_id}")
            self._hubs[tenant_id] = SyncHub(tenant_id)
        return self._hubs[tenant_id]

    def find(self, tenant_id: str) -> Optional[SyncHub]:
        """Lookup without side effects; reads must not register tenants."""
        return self._hubs.get(tenant_id)

    def __contains__(self, tenant_id: str) -> bool:
        return tenant_id in self._hubs

    def __len__(self) -> int:
        return len(self._hubs)

    def close_all(self):
        for hub in self._hubs.values():
            hub.close()

    def clear(self):
        self.close_all()
        self._hubs.clear()
