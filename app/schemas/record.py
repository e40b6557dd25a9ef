from datetime import datetime
from typing import ClassVar, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.coercion import (
    coerce_amount,
    coerce_date,
    coerce_identifier,
    coerce_text,
    parse_date,
    utcnow,
)

# Records arrive with camelCase keys from the browser cache and the realtime store.
# Unknown keys are kept as-is so every descriptive field survives a merge.

class SyncedRecord(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, alias_generator=to_camel)

    kind: ClassVar[str] = "record"

    id: Optional[str] = None
    date: datetime = Field(default_factory=utcnow)
    revision: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return coerce_identifier(v)

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v):
        return coerce_date(v)

    @field_validator("revision", mode="before")
    @classmethod
    def normalize_revision(cls, v):
        # Ordering tokens are whole numbers; anything else means "no token"
        if isinstance(v, bool) or v is None:
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float) and v.is_integer():
            return int(v)
        if isinstance(v, str) and v.strip().lstrip("-").isdigit():
            return int(v.strip())
        return None

    @property
    def key(self) -> Optional[str]:
        return self.id

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Receipt(SyncedRecord):
    kind: ClassVar[str] = "receipt"

    amount: Union[int, float] = 0
    client_name: Optional[str] = None
    client_cnic: Optional[str] = None
    nature_of_work: Optional[str] = None
    payment_method: Optional[str] = None
    created_by: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v):
        return coerce_amount(v)

    @field_validator("client_name", "client_cnic", "nature_of_work", "payment_method", "created_by", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)


class Client(SyncedRecord):
    kind: ClassVar[str] = "client"

    name: Optional[str] = None
    cnic: Optional[str] = None
    type: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("name", "cnic", "type", "phone", "email", "notes", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)


class Employee(SyncedRecord):
    kind: ClassVar[str] = "employee"

    employee_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    salary: Union[int, float] = 0
    status: Optional[str] = None

    @field_validator("salary", mode="before")
    @classmethod
    def normalize_salary(cls, v):
        return coerce_amount(v)

    @field_validator("employee_id", "name", "email", "phone", "position", "department", "status", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)


class Task(SyncedRecord):
    kind: ClassVar[str] = "task"

    title: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    assigned_by: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    deadline: Optional[datetime] = None
    documents_required: List[str] = Field(default_factory=list)

    @field_validator("deadline", mode="before")
    @classmethod
    def normalize_deadline(cls, v):
        # Unlike `date`, a missing deadline stays missing
        return parse_date(v)

    @field_validator("documents_required", mode="before")
    @classmethod
    def normalize_documents(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [coerce_text(d) for d in v if d is not None]
        return [coerce_text(v)]

    @field_validator("title", "description", "assigned_to", "assigned_by", "priority", "status", mode="before")
    @classmethod
    def normalize_text(cls, v):
        return coerce_text(v)
