from __future__ import annotations

from typing import Protocol, Sequence

from .model import PointEntry, UserViolationCounter


class PointsRepository(Protocol):
    def list_entries(self) -> Sequence[PointEntry]:
        raise NotImplementedError

    def append_entries(self, entries: Sequence[PointEntry]) -> None:
        """Entries are append-only; existing ones are never rewritten."""

        raise NotImplementedError

    def list_violation_counters(self) -> Sequence[UserViolationCounter]:
        raise NotImplementedError

    def save_violation_counters(self, counters: Sequence[UserViolationCounter]) -> None:
        raise NotImplementedError
