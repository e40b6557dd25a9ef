from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
import hashlib
from app.core.audit import audit_repo
from app.core.config import settings
from app.schemas.audit import AuditLogEntry, AuditStatus, AuditAction
import logging
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-ID"

def classify_request(method: str, path: str) -> Tuple[AuditAction, Optional[str]]:
    """Map a request onto an audit action and the collection it touches."""
    parts = [p for p in path.split("/") if p]
    if not parts:
        return AuditAction.UNKNOWN, None

    if parts[0] == "health":
        return AuditAction.HEALTH_CHECK, None

    if parts[0] == "collections" and len(parts) >= 2:
        collection = parts[1]
        tail = parts[2] if len(parts) > 2 else None
        if tail == "local":
            return AuditAction.LOCAL_SYNC, collection
        if tail == "remote":
            return AuditAction.REMOTE_PUSH, collection
        if tail == "listen":
            action = AuditAction.UNSUBSCRIBE if method == "DELETE" else AuditAction.SUBSCRIBE
            return action, collection
        if tail == "records" and method == "DELETE":
            return AuditAction.DELETE_RECORD, collection
        if method == "GET":
            return AuditAction.VIEW, collection
        return AuditAction.UNKNOWN, collection

    if parts[0] == "receipts" and len(parts) > 1 and parts[1] in ("summary", "report"):
        return AuditAction.REPORT, "receipts"

    if method == "GET":
        collection = parts[0] if parts[0] in ("receipts", "clients") else None
        return AuditAction.VIEW, collection

    return AuditAction.UNKNOWN, None

def is_public(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in settings.PUBLIC_PATHS)

def _save(entry: AuditLogEntry):
    try:
        audit_repo.save(entry)
    except Exception as e:
        logger.error(f"Audit Logging Failed: {e}")

class AuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        endpoint = request.url.path
        method = request.method
        action_type, collection = classify_request(method, endpoint)

        tenant_id = request.headers.get(TENANT_HEADER)
        public = is_public(endpoint)

        logger.debug(f"Request to {endpoint}, tenant_id={tenant_id}, public={public}")

        if not tenant_id and not public:
            _save(AuditLogEntry(
                endpoint=endpoint,
                method=method,
                action_type=action_type,
                collection=collection,
                tenant_id="MISSING",
                status=AuditStatus.FAILURE
            ))
            return JSONResponse(status_code=400, content={"detail": "Missing tenant identifier"})

        if not tenant_id:
            tenant_id = "PUBLIC"

        # Starlette caches the body, so the route handler can still read it
        request_body_bytes = await request.body()
        input_hash = hashlib.sha256(request_body_bytes).hexdigest()

        status = AuditStatus.FAILURE
        output_hash = None

        try:
            response = await call_next(request)
            if 200 <= response.status_code < 300:
                status = AuditStatus.SUCCESS

            response_body_bytes = b""
            async for chunk in response.body_iterator:
                response_body_bytes += chunk
            output_hash = hashlib.sha256(response_body_bytes).hexdigest()

            response = Response(
                content=response_body_bytes,
                status_code=response.status_code,
                headers=dict(response.headers),
                media_type=response.media_type
            )
        finally:
            _save(AuditLogEntry(
                endpoint=endpoint,
                method=method,
                action_type=action_type,
                collection=collection,
                tenant_id=tenant_id,
                input_hash=input_hash,
                output_hash=output_hash,
                status=status
            ))

        return response
