from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Any
import logging

from app.api.deps import get_hub, read_hub, sync_for
from app.core.sync import RecordNotFoundError, SyncHub
from app.schemas.sync import MergedViewResponse, SyncStatus, TenantSyncStatus

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/collections/{collection}/listen", response_model=SyncStatus)
async def start_listening(collection: str, hub: SyncHub = Depends(get_hub)):
    sync = sync_for(hub, collection)
    sync.start()
    return sync.status()

@router.delete("/collections/{collection}/listen", response_model=SyncStatus)
async def stop_listening(collection: str, hub: SyncHub = Depends(read_hub)):
    sync = sync_for(hub, collection)
    sync.stop()
    return sync.status()

@router.put("/collections/{collection}/local", response_model=SyncStatus)
async def replace_local(collection: str, records: Any = Body(...), hub: SyncHub = Depends(get_hub)):
    """
    Replace the tenant's local cache for a collection.
    An active sync folds the new contents in without overwriting remote entries.
    """
    sync = sync_for(hub, collection)
    if not isinstance(records, list):
        logger.warning(f"Ignoring non-list local payload for '{collection}' (tenant {hub.tenant_id})")
        return sync.status()

    hub.local_store.replace(collection, records)
    logger.info(f"Local cache replaced: {collection} ({len(records)} records, tenant {hub.tenant_id})")
    return sync.status()

@router.post("/collections/{collection}/remote", response_model=SyncStatus)
async def push_remote(collection: str, records: Any = Body(...), hub: SyncHub = Depends(get_hub)):
    """Deliver a change batch from the realtime store to the collection's listener."""
    sync = sync_for(hub, collection)
    hub.remote_source.publish(collection, records)
    return sync.status()

@router.get("/collections/{collection}", response_model=MergedViewResponse)
async def get_merged_view(collection: str, hub: SyncHub = Depends(read_hub)):
    view = sync_for(hub, collection).view
    return MergedViewResponse(
        collection=view.collection,
        count=len(view),
        updated_at=view.updated_at,
        records=[r.to_wire() for r in view.records]
    )

@router.delete("/collections/{collection}/records/{record_id}", response_model=SyncStatus)
async def delete_record(collection: str, record_id: str, hub: SyncHub = Depends(read_hub)):
    sync = sync_for(hub, collection)
    try:
        sync.delete(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return sync.status()

@router.get("/sync/status", response_model=TenantSyncStatus)
async def sync_status(hub: SyncHub = Depends(read_hub)):
    return hub.statuses()
