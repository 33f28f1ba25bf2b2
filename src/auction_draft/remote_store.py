"""Remote shared store contract and an in-memory implementation.

The store holds keyed collections (``teams``, ``users``, ``players``) and
singleton documents (``auction/state``). Subscribers always receive whole
snapshots, never deltas.
"""

import copy
import logging
from typing import Callable, Dict, List, Optional

from src.auction_draft.scheduler import Scheduler

logger = logging.getLogger(__name__)

Record = Dict
CollectionCallback = Callable[[List[Record]], None]
DocumentCallback = Callable[[Optional[Record]], None]


class StoreError(Exception):
    """Raised when a read or write against the remote store fails."""


class RemoteStore:
    """Interface every remote store backend implements."""

    def create(self, collection: str, key: int, record: Record):
        raise NotImplementedError

    def read_all(self, collection: str) -> List[Record]:
        raise NotImplementedError

    def read(self, path: str) -> Optional[Record]:
        raise NotImplementedError

    def update(self, collection: str, key: int, fields: Record):
        raise NotImplementedError

    def set_document(self, path: str, record: Record):
        raise NotImplementedError

    def delete(self, collection: str, key: int):
        raise NotImplementedError

    def subscribe_collection(
        self, collection: str, callback: CollectionCallback
    ) -> Callable[[], None]:
        raise NotImplementedError

    def subscribe_document(
        self, path: str, callback: DocumentCallback
    ) -> Callable[[], None]:
        raise NotImplementedError


class InMemoryStore(RemoteStore):
    """Process-local store with change feeds.

    Args:
        scheduler: When given, change notifications are delivered through
            ``scheduler.call_later(0, ...)`` instead of synchronously.
    """

    def __init__(self, scheduler: Optional[Scheduler] = None):
        self._scheduler = scheduler
        self._collections: Dict[str, Dict[int, Record]] = {}
        self._documents: Dict[str, Record] = {}
        self._collection_subs: Dict[str, List[CollectionCallback]] = {}
        self._document_subs: Dict[str, List[DocumentCallback]] = {}
        self.fail_writes = False

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def read_all(self, collection: str) -> List[Record]:
        records = self._collections.get(collection, {})
        return [copy.deepcopy(records[k]) for k in sorted(records)]

    def read(self, path: str) -> Optional[Record]:
        doc = self._documents.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create(self, collection: str, key: int, record: Record):
        self._check_writable("create", collection)
        self._collections.setdefault(collection, {})[key] = copy.deepcopy(record)
        self._after_collection_write(collection)

    def update(self, collection: str, key: int, fields: Record):
        self._check_writable("update", collection)
        records = self._collections.setdefault(collection, {})
        if key not in records:
            raise StoreError(f"No record {collection}/{key}")
        records[key].update(copy.deepcopy(fields))
        self._after_collection_write(collection)

    def set_document(self, path: str, record: Record):
        self._check_writable("set", path)
        self._documents[path] = copy.deepcopy(record)
        self._after_document_write(path)

    def delete(self, collection: str, key: int):
        self._check_writable("delete", collection)
        self._collections.get(collection, {}).pop(key, None)
        self._after_collection_write(collection)

    def _check_writable(self, operation: str, target: str):
        if self.fail_writes:
            logger.debug("Injected failure for %s %s", operation, target)
            raise StoreError(f"{operation} {target} rejected by store")

    def _after_collection_write(self, collection: str):
        self._notify_collection(collection)

    def _after_document_write(self, path: str):
        self._notify_document(path)

    # ------------------------------------------------------------------
    # Change feeds
    # ------------------------------------------------------------------
    def subscribe_collection(
        self, collection: str, callback: CollectionCallback
    ) -> Callable[[], None]:
        subs = self._collection_subs.setdefault(collection, [])
        subs.append(callback)

        def unsubscribe():
            if callback in subs:
                subs.remove(callback)

        return unsubscribe

    def subscribe_document(
        self, path: str, callback: DocumentCallback
    ) -> Callable[[], None]:
        subs = self._document_subs.setdefault(path, [])
        subs.append(callback)

        def unsubscribe():
            if callback in subs:
                subs.remove(callback)

        return unsubscribe

    def _notify_collection(self, collection: str):
        for callback in list(self._collection_subs.get(collection, [])):
            self._deliver(callback, self.read_all(collection))

    def _notify_document(self, path: str):
        for callback in list(self._document_subs.get(path, [])):
            self._deliver(callback, self.read(path))

    def _deliver(self, callback, snapshot):
        if self._scheduler is None:
            callback(snapshot)
        else:
            self._scheduler.call_later(0, callback, snapshot)
