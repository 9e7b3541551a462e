from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import Department, Designation


class DepartmentRepository(Protocol):
    def get_by_id(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def exists_with(self, column: str, value: Any, *, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def create(self, values: dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, department_id: int, changes: dict[str, Any]) -> Optional[Department]:
        raise NotImplementedError

    def delete_by_id(self, department_id: int) -> bool:
        raise NotImplementedError

    def count_children(self, department_id: int) -> int:
        raise NotImplementedError


class DesignationRepository(Protocol):
    def get_by_id(self, designation_id: int) -> Optional[Designation]:
        raise NotImplementedError

    def list_all(self, *, department_id: Optional[int] = None) -> Sequence[Designation]:
        raise NotImplementedError

    def exists_with(self, column: str, value: Any, *, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def create(self, values: dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, designation_id: int, changes: dict[str, Any]) -> Optional[Designation]:
        raise NotImplementedError

    def delete_by_id(self, designation_id: int) -> bool:
        raise NotImplementedError

    def count_children(self, designation_id: int) -> int:
        raise NotImplementedError

    def count_for_department(self, department_id: int) -> int:
        raise NotImplementedError
