from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid
from enum import Enum

from app.core.coercion import utcnow

class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"

class AuditAction(str, Enum):
    LOCAL_SYNC = "LOCAL_SYNC"
    REMOTE_PUSH = "REMOTE_PUSH"
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    DELETE_RECORD = "DELETE_RECORD"
    REPORT = "REPORT"
    VIEW = "VIEW"
    HEALTH_CHECK = "HEALTH_CHECK"
    UNKNOWN = "UNKNOWN"

class AuditLogEntry(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=utcnow)
    endpoint: str
    method: str
    action_type: AuditAction
    collection: Optional[str] = None
    tenant_id: str
    input_hash: Optional[str] = None
    output_hash: Optional[str] = None
    status: AuditStatus
