"""Change tracking for edit forms.

Every edit form keeps two views of a record: the values currently shown
(``initial_data``) and the minimal set of keys that differ from the stored
record (``changed_data``). Only ``changed_data`` is submitted.
"""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..core.enums import MaritalStatus

SPOUSE_DEPENDENT_FIELDS = ("employment_of_spouse", "number_of_children")


def _normalize(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _same(a: Any, b: Any) -> bool:
    a, b = _normalize(a), _normalize(b)
    if a == b:
        return True
    # "3" from a form field and 3 from the database are the same value
    if a is not None and b is not None and not isinstance(a, bool) and not isinstance(b, bool):
        return str(a) == str(b)
    return False


class ChangeTracker:
    def __init__(self, original: Mapping[str, Any], *, key: str = "id", fields: Optional[Iterable[str]] = None):
        self._key = key
        self._fields = list(fields) if fields is not None else [k for k in original if k != key]
        self._original = {k: original.get(k) for k in [key, *self._fields]}
        self.initial_data: dict[str, Any] = {}
        self.changed_data: dict[str, Any] = {}
        self.data_changed = False
        self.reset()

    @property
    def original(self) -> dict[str, Any]:
        return dict(self._original)

    def reset(self) -> None:
        self.initial_data = {k: ("" if v is None else v) for k, v in self._original.items()}
        self.changed_data = {self._key: self._original.get(self._key)}
        self.data_changed = False

    def set(self, field: str, value: Any) -> None:
        self.initial_data[field] = value
        self.changed_data[field] = value

        if value == "":
            self.initial_data.pop(field, None)
            self.changed_data.pop(field, None)

        if field == "marital_status" and value == MaritalStatus.SINGLE.value:
            for dependent in SPOUSE_DEPENDENT_FIELDS:
                self.initial_data[dependent] = ""
                self.changed_data[dependent] = None

        self._recompute()

    def set_many(self, values: Mapping[str, Any]) -> None:
        for field, value in values.items():
            if field != self._key:
                self.set(field, value)

    def is_disabled(self, field: str) -> bool:
        """Spouse/children inputs are disabled while marital status is Single."""
        if field not in SPOUSE_DEPENDENT_FIELDS:
            return False
        single = MaritalStatus.SINGLE.value
        return self.changed_data.get("marital_status") == single or self._original.get("marital_status") == single

    def payload(self, **extra: Any) -> dict[str, Any]:
        return {**extra, **self.changed_data}

    def _recompute(self) -> None:
        for field in list(self.changed_data):
            if field != self._key and field in self._original and self.changed_data[field] == self._original[field]:
                del self.changed_data[field]
        self.data_changed = any(k != self._key for k in self.changed_data)


def diff_record(original: Mapping[str, Any], incoming: Mapping[str, Any], fields: Optional[Iterable[str]] = None) -> dict[str, Any]:
    """Server-side minimal changeset: incoming values that differ from the record.

    Empty strings are stored as NULL, so ``""`` against ``None`` is not a change.
    """
    keys = list(fields) if fields is not None else list(incoming.keys())
    changes: dict[str, Any] = {}
    for k in keys:
        if k not in incoming:
            continue
        new = _normalize(incoming[k])
        if not _same(original.get(k), new):
            changes[k] = new
    return changes
