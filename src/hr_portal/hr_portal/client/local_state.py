from __future__ import annotations

from typing import Any, Iterable, Iterator, Optional


class RecordList:
    """Client-side copy of a server list, patched optimistically after writes.

    Records are dicts keyed by ``key`` (``id`` by default). Order is kept:
    ``upsert`` replaces in place or appends.
    """

    def __init__(self, records: Iterable[dict[str, Any]] = (), *, key: str = "id"):
        self._key = key
        self._records: list[dict[str, Any]] = [dict(r) for r in records]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: Any) -> Optional[dict[str, Any]]:
        return next((r for r in self._records if r.get(self._key) == record_id), None)

    def upsert(self, record: dict[str, Any]) -> None:
        for i, existing in enumerate(self._records):
            if existing.get(self._key) == record.get(self._key):
                self._records[i] = {**existing, **record}
                return
        self._records.append(dict(record))

    def remove(self, record_id: Any) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if r.get(self._key) != record_id]
        return len(self._records) != before

    def replace(self, records: Iterable[dict[str, Any]]) -> None:
        self._records = [dict(r) for r in records]

    def to_list(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._records]
