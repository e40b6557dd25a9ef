from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List
import logging

logger = logging.getLogger(__name__)

BatchCallback = Callable[[List[Any]], None]


class LocalStore(ABC):
    """On-device cache of records, one list per collection."""

    @abstractmethod
    def get_all(self, collection: str) -> List[Any]:
        pass

    @abstractmethod
    def replace(self, collection: str, records: List[Any]):
        pass

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool:
        pass

    @abstractmethod
    def subscribe(self, collection: str, callback: BatchCallback):
        pass

    @abstractmethod
    def unsubscribe(self, collection: str, callback: BatchCallback):
        pass


class RemoteSource(ABC):
    """Realtime cloud store pushing whole batches to one listener per collection."""

    @abstractmethod
    def listen(self, collection: str, callback: BatchCallback):
        pass

    @abstractmethod
    def stop_listening(self, collection: str):
        pass

    @abstractmethod
    def publish(self, collection: str, records: List[Any]):
        pass


class InMemoryLocalStore(LocalStore):
    def __init__(self):
        self._collections: Dict[str, List[Any]] = {}
        self._subscribers: Dict[str, List[BatchCallback]] = {}

    def get_all(self, collection: str) -> List[Any]:
        return list(self._collections.get(collection, []))

    def replace(self, collection: str, records: List[Any]):
        # A new list identity on every change, as the view layer expects
        self._collections[collection] = list(records)
        self._notify(collection)

    def delete(self, collection: str, record_id: str) -> bool:
        current = self._collections.get(collection, [])
        kept = [r for r in current if not (isinstance(r, dict) and str(r.get("id")) == str(record_id))]
        if len(kept) == len(current):
            return False
        self._collections[collection] = kept
        self._notify(collection)
        return True

    def subscribe(self, collection: str, callback: BatchCallback):
        callbacks = self._subscribers.setdefault(collection, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, collection: str, callback: BatchCallback):
        callbacks = self._subscribers.get(collection, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def _notify(self, collection: str):
        snapshot = self.get_all(collection)
        for callback in list(self._subscribers.get(collection, [])):
            callback(snapshot)


class InMemoryRemoteSource(RemoteSource):
    def __init__(self):
        self._listeners: Dict[str, BatchCallback] = {}
        self._snapshots: Dict[str, List[Any]] = {}

    def listen(self, collection: str, callback: BatchCallback):
        if collection in self._listeners:
            logger.debug(f"Replacing existing remote listener for '{collection}'")
        self._listeners[collection] = callback
        logger.info(f"Remote listener attached: {collection}")

        # New listeners get the current snapshot straight away
        if collection in self._snapshots:
            snapshot = self._snapshots[collection]
            callback(list(snapshot) if isinstance(snapshot, list) else snapshot)

    def stop_listening(self, collection: str):
        if self._listeners.pop(collection, None) is not None:
            logger.info(f"Remote listener removed: {collection}")

    def publish(self, collection: str, records: List[Any]):
        self._snapshots[collection] = list(records) if isinstance(records, list) else records
        callback = self._listeners.get(collection)
        if callback is None:
            logger.debug(f"No listener for '{collection}', snapshot stored only")
            return
        callback(self._snapshots[collection])

    def is_listening(self, collection: str) -> bool:
        return collection in self._listeners
