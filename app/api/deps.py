from fastapi import Header, HTTPException, Request
from app.core.normalize import UnknownCollectionError
from app.core.sync import CollectionSync, HubRegistry, SyncHub

def get_registry(request: Request) -> HubRegistry:
    return request.app.state.hubs

def get_hub(request: Request, x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> SyncHub:
    """Hub for routes that write; the tenant is registered on first use."""
    return get_registry(request).get(x_tenant_id)

def read_hub(request: Request, x_tenant_id: str = Header(..., alias="X-Tenant-ID")) -> SyncHub:
    # Unknown tenants get a throwaway empty hub that is never stored
    return get_registry(request).find(x_tenant_id) or SyncHub(x_tenant_id)

def sync_for(hub: SyncHub, collection: str) -> CollectionSync:
    try:
        return hub.get(collection)
    except UnknownCollectionError as e:
        raise HTTPException(status_code=404, detail=str(e))
