from typing import Any, Dict, Iterable, List, Optional, Set, Type
import logging

from app.core.coercion import utcnow
from app.core.normalize import normalize_record, record_type_for
from app.schemas.record import SyncedRecord
from app.schemas.sync import MergedView

# MERGE ENGINE
# Pure functions: every call takes the current view and returns a new one.
# Remote records overwrite; local records only fill gaps.

logger = logging.getLogger(__name__)


def empty_view(collection: str) -> MergedView:
    record_type_for(collection)
    return MergedView(collection=collection)


def sort_by_date_desc(records: Iterable[SyncedRecord]) -> List[SyncedRecord]:
    return sorted(records, key=lambda r: r.date.timestamp(), reverse=True)


def _normalize_batch(batch: Iterable[Any], model: Type[SyncedRecord]) -> List[SyncedRecord]:
    normalized = (normalize_record(raw, model) for raw in batch)
    return [r for r in normalized if r is not None]


def _index(view: MergedView, model: Type[SyncedRecord]) -> Dict[str, SyncedRecord]:
    index: Dict[str, SyncedRecord] = {}
    for record in _normalize_batch(view.records, model):
        if record.key is not None:
            index[record.key] = record
    return index


def _is_stale(incoming: SyncedRecord, existing: Optional[SyncedRecord], remote_keys: Set[str]) -> bool:
    # Tokens only order remote pushes; a local entry never outranks the remote store
    if existing is None or existing.key not in remote_keys:
        return False
    if existing.revision is None or incoming.revision is None:
        return False
    return incoming.revision < existing.revision


def _rebuild(view: MergedView, index: Dict[str, SyncedRecord], remote_keys: Set[str]) -> MergedView:
    return MergedView(
        collection=view.collection,
        records=sort_by_date_desc(index.values()),
        updated_at=utcnow(),
        remote_keys=remote_keys & set(index),
    )


def merge_remote(view: MergedView, remote_batch: Any) -> MergedView:
    """
    Overlay a batch pushed by the remote store onto the view.

    Every remote record replaces the entry with the same id, whether that entry
    came from the local cache or an earlier push. The one exception is a record
    whose `revision` is lower than that of an entry an earlier push delivered;
    entries from the local cache never block a push.
    Records without an id are dropped. A non-list batch leaves the view as is.
    """
    if not isinstance(remote_batch, list):
        logger.debug(f"Ignoring non-list remote batch for '{view.collection}'")
        return view

    model = record_type_for(view.collection)
    index = _index(view, model)
    remote_keys = set(view.remote_keys)

    skipped = 0
    for record in _normalize_batch(remote_batch, model):
        if record.key is None:
            skipped += 1
            continue
        if _is_stale(record, index.get(record.key), view.remote_keys):
            logger.info(
                f"Stale remote record {view.collection}/{record.key} "
                f"(revision {record.revision} < {index[record.key].revision}) ignored"
            )
            continue
        index[record.key] = record
        remote_keys.add(record.key)

    if skipped:
        logger.debug(f"Skipped {skipped} remote record(s) without id in '{view.collection}'")

    return _rebuild(view, index, remote_keys)


def merge_local(view: MergedView, local_batch: Any) -> MergedView:
    """
    Fold the local cache into the view without touching ids it already holds,
    so a record once received from the remote store keeps its remote version.
    """
    if not isinstance(local_batch, list):
        logger.debug(f"Ignoring non-list local batch for '{view.collection}'")
        return view

    model = record_type_for(view.collection)
    index = _index(view, model)

    for record in _normalize_batch(local_batch, model):
        if record.key is not None and record.key not in index:
            index[record.key] = record

    return _rebuild(view, index, set(view.remote_keys))


def drop_record(view: MergedView, record_id: Any) -> MergedView:
    """Explicit deletion; the merge operations themselves never remove entries."""
    key = str(record_id)
    remaining = [r for r in view.records if r.key != key]
    if len(remaining) == len(view.records):
        return view
    return MergedView(
        collection=view.collection,
        records=remaining,
        updated_at=utcnow(),
        remote_keys=view.remote_keys - {key},
    )
