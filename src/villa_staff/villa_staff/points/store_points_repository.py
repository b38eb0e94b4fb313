from __future__ import annotations

from typing import Sequence

from ..core.constants import COLLECTION_POINT_ENTRIES, COLLECTION_POINT_RULES, COLLECTION_VIOLATIONS
from ..storage.gateway import PersistenceGateway
from .catalog import RuleCatalog
from .model import PointEntry, UserViolationCounter
from .repository import PointsRepository


class StorePointsRepository(PointsRepository):
    def __init__(self, gateway: PersistenceGateway):
        self._gateway = gateway

    def list_entries(self) -> Sequence[PointEntry]:
        entries = [PointEntry.from_record(r) for r in self._gateway.load(COLLECTION_POINT_ENTRIES)]
        entries.sort(key=lambda e: e.assigned_at)
        return entries

    def append_entries(self, entries: Sequence[PointEntry]) -> None:
        self._gateway.save(COLLECTION_POINT_ENTRIES, [e.to_record() for e in entries])

    def list_violation_counters(self) -> Sequence[UserViolationCounter]:
        return [UserViolationCounter.from_record(r) for r in self._gateway.load(COLLECTION_VIOLATIONS)]

    def save_violation_counters(self, counters: Sequence[UserViolationCounter]) -> None:
        self._gateway.save(COLLECTION_VIOLATIONS, [c.to_record() for c in counters])


def load_rule_catalog(gateway: PersistenceGateway) -> RuleCatalog:
    """Catalog from the read-only `point_rules` collection, or the built-in defaults."""
    return RuleCatalog.from_records(gateway.load(COLLECTION_POINT_RULES))
