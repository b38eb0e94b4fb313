from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Optional, Sequence

from ..core.exceptions import StoreUnavailableError
from .base import ChangeListener, Record, RecordStore
from .local_store import LocalJsonStore

logger = logging.getLogger(__name__)


class PersistenceGateway:
    """Uniform access to persisted collections.

    Reads and writes go to the remote store when one is configured; on
    `StoreUnavailableError` the gateway falls back to the local cache under the
    same collection name and reports itself offline until the remote answers
    again. Listeners registered with `subscribe` receive a payload-less call
    after every successful write to their collection and are expected to
    re-`load`.
    """

    def __init__(self, local: LocalJsonStore, remote: Optional[RecordStore] = None):
        self._local = local
        self._remote = remote
        self._remote_available = remote is not None
        self._listeners: dict[str, list[ChangeListener]] = defaultdict(list)

    @property
    def is_remote_configured(self) -> bool:
        return self._remote is not None

    @property
    def is_remote_available(self) -> bool:
        return self._remote is not None and self._remote_available

    def load(self, collection: str) -> list[Record]:
        if self._remote is not None:
            try:
                records = self._remote.load(collection)
            except StoreUnavailableError as e:
                self._mark_offline("load", collection, e)
            else:
                self._mark_online()
                self._local.replace_all(collection, records)
                return records
        return self._local.load(collection)

    def save(self, collection: str, records: Sequence[Record]) -> None:
        if not records:
            return
        if self._remote is not None:
            try:
                self._remote.save(collection, records)
            except StoreUnavailableError as e:
                self._mark_offline("save", collection, e)
            else:
                self._mark_online()
        self._local.save(collection, records)
        self._notify(collection)

    def delete(self, collection: str, record_id: str) -> bool:
        deleted = False
        if self._remote is not None:
            try:
                deleted = self._remote.delete(collection, record_id)
            except StoreUnavailableError as e:
                self._mark_offline("delete", collection, e)
            else:
                self._mark_online()
        deleted = self._local.delete(collection, record_id) or deleted
        if deleted:
            self._notify(collection)
        return deleted

    def subscribe(self, collection: str, on_change: ChangeListener) -> Callable[[], None]:
        self._listeners[collection].append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners[collection]:
                self._listeners[collection].remove(on_change)

        return unsubscribe

    def _notify(self, collection: str) -> None:
        for listener in list(self._listeners.get(collection, ())):
            listener()

    def _mark_offline(self, operation: str, collection: str, error: StoreUnavailableError) -> None:
        if self._remote_available:
            logger.warning("Remote store unavailable, using local cache (%s %s): %s", operation, collection, error)
        else:
            logger.debug("Remote store still unavailable (%s %s)", operation, collection)
        self._remote_available = False

    def _mark_online(self) -> None:
        if not self._remote_available:
            logger.info("Remote store reachable again")
        self._remote_available = True
