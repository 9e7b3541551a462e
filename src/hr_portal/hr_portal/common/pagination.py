from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar

from ..core.constants import DEFAULT_PER_PAGE

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a length-aware listing."""

    items: Sequence[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        if self.per_page <= 0:
            return 1
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def to_dict(self, serialize: Callable[[T], Any]) -> dict[str, Any]:
        return {
            "data": [serialize(item) for item in self.items],
            "total": self.total,
            "current_page": self.page,
            "per_page": self.per_page,
            "last_page": self.last_page,
        }


def normalize_page(page: Any, per_page: Any, *, max_per_page: int) -> tuple[int, int]:
    try:
        page_i = max(1, int(page or 1))
    except (TypeError, ValueError):
        page_i = 1
    try:
        per_page_i = int(per_page or DEFAULT_PER_PAGE)
    except (TypeError, ValueError):
        per_page_i = DEFAULT_PER_PAGE
    per_page_i = min(max(1, per_page_i), max_per_page)
    return page_i, per_page_i
