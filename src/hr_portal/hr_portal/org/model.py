from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Department:
    id: int
    name: str
    code: Optional[str] = None
    parent_id: Optional[int] = None
    manager_id: Optional[int] = None
    description: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Designation:
    id: int
    title: str
    department_id: int
    parent_id: Optional[int] = None
    hierarchy_level: int = 1
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
