from __future__ import annotations

from typing import Callable, Protocol, Sequence

Record = dict
ChangeListener = Callable[[], None]


class RecordStore(Protocol):
    """Keyed record store addressed by logical collection name.

    Records are flat dicts carrying an `id`; `save` upserts by that id.
    """

    def load(self, collection: str) -> list[Record]:
        raise NotImplementedError

    def save(self, collection: str, records: Sequence[Record]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, record_id: str) -> bool:
        raise NotImplementedError
