from collections.abc import Mapping
from typing import Any, Dict, Optional, Type
import logging

from app.schemas.record import Client, Employee, Receipt, SyncedRecord, Task

logger = logging.getLogger(__name__)

# Collection name -> record type
COLLECTIONS: Dict[str, Type[SyncedRecord]] = {
    "receipts": Receipt,
    "clients": Client,
    "employees": Employee,
    "tasks": Task,
}


class UnknownCollectionError(KeyError):
    def __init__(self, collection: str):
        super().__init__(collection)
        self.collection = collection

    def __str__(self):
        return f"Unknown collection '{self.collection}'"


def record_type_for(collection: str) -> Type[SyncedRecord]:
    try:
        return COLLECTIONS[collection]
    except KeyError:
        raise UnknownCollectionError(collection)


def normalize_record(raw: Any, model: Type[SyncedRecord] = Receipt) -> Optional[SyncedRecord]:
    """
    Canonical copy of one raw record: `date` is always a valid datetime and
    amount-like fields are always numbers. Non-mapping input yields None.
    Already-normalized records are re-validated so the result is always `model`.
    """
    if isinstance(raw, SyncedRecord):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        logger.debug(f"Skipping non-mapping record of type {type(raw).__name__}")
        return None
    return model.model_validate(dict(raw))
