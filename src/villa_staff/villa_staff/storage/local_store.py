from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Sequence

from ..core.constants import LOCAL_KEY_PREFIX
from .base import Record

logger = logging.getLogger(__name__)


class LocalJsonStore:
    """Local cache: one JSON file per collection, keyed like the browser store.

    `villa_sun_tasks.json` holds the `tasks` collection, and so on.
    """

    def __init__(self, directory: str | Path, *, key_prefix: str = LOCAL_KEY_PREFIX):
        self._directory = Path(directory)
        self._key_prefix = key_prefix

    def path_for(self, collection: str) -> Path:
        return self._directory / f"{self._key_prefix}{collection}.json"

    def load(self, collection: str) -> list[Record]:
        path = self.path_for(collection)
        if not path.exists():
            return []
        data = json.loads(path.read_text(encoding="utf-8") or "[]")
        if not isinstance(data, list):
            raise ValueError(f"{path} does not contain a list of records")
        return [dict(r) for r in data]

    def save(self, collection: str, records: Sequence[Record]) -> None:
        if not records:
            return
        incoming = {str(r["id"]): dict(r) for r in records}
        merged = []
        for existing in self.load(collection):
            rid = str(existing.get("id"))
            merged.append(incoming.pop(rid) if rid in incoming else existing)
        merged.extend(incoming.values())
        self._write(collection, merged)

    def delete(self, collection: str, record_id: str) -> bool:
        records = self.load(collection)
        kept = [r for r in records if str(r.get("id")) != str(record_id)]
        if len(kept) == len(records):
            return False
        self._write(collection, kept)
        return True

    def replace_all(self, collection: str, records: Sequence[Record]) -> None:
        """Overwrite the cached collection with a fresh remote snapshot."""
        self._write(collection, [dict(r) for r in records])

    def _write(self, collection: str, records: list[Record]) -> None:
        path = self.path_for(collection)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, path)
        logger.debug("Wrote %d %s records to %s", len(records), collection, path)
