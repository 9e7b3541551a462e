from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.hierarchy import build_tree, creates_cycle
from ..common.validators import FieldErrors, blank, to_bool
from ..core.exceptions import NotFoundError, ValidationError
from ..forms.changeset import diff_record
from ..users.repository import UserRepository
from .model import Department, Designation
from .repository import DepartmentRepository, DesignationRepository

logger = logging.getLogger(__name__)


def _check_parent(repo, node_id: Optional[int], parent_id: Optional[int], errors: FieldErrors, label: str):
    """Validate ``parent_id``; returns the parent record or None."""
    if parent_id is None:
        return None
    if node_id is not None and parent_id == node_id:
        errors.add("parent_id", f"A {label} cannot be its own parent.")
        return None
    parent = repo.get_by_id(parent_id)
    if not parent:
        errors.add("parent_id", f"The selected parent {label} does not exist.")
        return None

    def parent_of(pk: int) -> Optional[int]:
        record = repo.get_by_id(pk)
        return record.parent_id if record else None

    if creates_cycle(node_id, parent_id, parent_of):
        errors.add("parent_id", f"The selected parent would create a circular {label} hierarchy.")
        return None
    return parent


class DepartmentService:
    def __init__(self, departments: DepartmentRepository, users: UserRepository, designations: DesignationRepository):
        self._departments = departments
        self._users = users
        self._designations = designations

    def list(self) -> Sequence[Department]:
        return self._departments.list_all()

    def get(self, department_id: int) -> Department:
        department = self._departments.get_by_id(department_id)
        if not department:
            raise NotFoundError("Department not found.")
        return department

    def tree(self) -> list[dict[str, Any]]:
        return build_tree(d.to_dict() for d in self._departments.list_all())

    def _clean(self, data: dict[str, Any], *, department_id: Optional[int] = None) -> dict[str, Any]:
        errors = FieldErrors()
        out: dict[str, Any] = {}

        if department_id is None or "name" in data:
            name = errors.required(data, "name", "The department name is required.")
            if name is not None:
                name = errors.optional_str(data, "name", max_len=255)
                if name and self._departments.exists_with("name", name, exclude_id=department_id):
                    errors.add("name", "A department with this name already exists.")
                out["name"] = name

        if "code" in data:
            code = errors.optional_str(data, "code", max_len=20)
            if code and self._departments.exists_with("code", code, exclude_id=department_id):
                errors.add("code", "The code has already been taken.")
            out["code"] = code

        if "description" in data:
            out["description"] = errors.optional_str(data, "description", max_len=1000)

        if "parent_id" in data:
            parent_id = errors.integer(data, "parent_id", required=False, min_value=1)
            _check_parent(self._departments, department_id, parent_id, errors, "department")
            out["parent_id"] = parent_id

        if "manager_id" in data:
            manager_id = errors.integer(data, "manager_id", required=False, min_value=1)
            if manager_id is not None and not self._users.get_by_id(manager_id):
                errors.add("manager_id", "The selected manager does not exist.")
            out["manager_id"] = manager_id

        if "is_active" in data:
            out["is_active"] = to_bool(data["is_active"])

        errors.raise_if_any()
        return out

    def create(self, data: dict[str, Any]) -> Department:
        values = self._clean(data)
        values.setdefault("is_active", True)
        department_id = self._departments.create(values)
        logger.info("Department %s created: %s", department_id, values["name"])
        return self.get(department_id)

    def update(self, department_id: int, data: dict[str, Any]) -> Department:
        department = self.get(department_id)
        changes = diff_record(department.to_dict(), data, fields=Department.__dataclass_fields__.keys() - {"id"})
        if not changes:
            return department
        values = self._clean(changes, department_id=department_id)
        return self._departments.update(department_id, values) or department

    def delete(self, department_id: int) -> None:
        self.get(department_id)
        if self._departments.count_children(department_id):
            raise ValidationError("Cannot delete a department that has sub-departments.")
        if self._users.count_by("department_id", department_id):
            raise ValidationError("Cannot delete a department with assigned employees.")
        if self._designations.count_for_department(department_id):
            raise ValidationError("Cannot delete a department that still has designations.")
        self._departments.delete_by_id(department_id)
        logger.info("Department %s deleted", department_id)

    def stats(self) -> dict[str, Any]:
        departments = list(self._departments.list_all())
        active = [d for d in departments if d.is_active]
        return {
            "total": len(departments),
            "active": len(active),
            "inactive": len(departments) - len(active),
            "root": sum(1 for d in departments if d.parent_id is None),
            "with_manager": sum(1 for d in departments if d.manager_id),
            "employees": {d.id: self._users.count_by("department_id", d.id) for d in departments},
        }


class DesignationService:
    def __init__(self, designations: DesignationRepository, departments: DepartmentRepository, users: UserRepository):
        self._designations = designations
        self._departments = departments
        self._users = users

    def list(self, department_id: Optional[int] = None) -> Sequence[Designation]:
        return self._designations.list_all(department_id=department_id)

    def get(self, designation_id: int) -> Designation:
        designation = self._designations.get_by_id(designation_id)
        if not designation:
            raise NotFoundError("Designation not found.")
        return designation

    def tree(self, department_id: Optional[int] = None) -> list[dict[str, Any]]:
        return build_tree(d.to_dict() for d in self._designations.list_all(department_id=department_id))

    def _clean(self, data: dict[str, Any], *, current: Optional[Designation] = None) -> dict[str, Any]:
        errors = FieldErrors()
        out: dict[str, Any] = {}
        designation_id = current.id if current else None

        department_id = current.department_id if current else None
        if current is None or "department_id" in data:
            department_id = errors.integer(data, "department_id", min_value=1)
            if department_id is not None and not self._departments.get_by_id(department_id):
                errors.add("department_id", "The selected department does not exist.")
            out["department_id"] = department_id

        if current is None or "title" in data:
            title = errors.required(data, "title", "The designation title is required.")
            if title is not None:
                title = errors.optional_str(data, "title", max_len=255)
            out["title"] = title

        title = out.get("title", current.title if current else None)
        if title and department_id and ("title" in out or "department_id" in out):
            clash = [
                d for d in self._designations.list_all(department_id=department_id)
                if d.title.lower() == title.lower() and d.id != designation_id
            ]
            if clash:
                errors.add("title", "This designation already exists in the department.")

        parent = None
        if "parent_id" in data:
            parent_id = errors.integer(data, "parent_id", required=False, min_value=1)
            parent = _check_parent(self._designations, designation_id, parent_id, errors, "designation")
            out["parent_id"] = parent_id

        if not blank(data.get("hierarchy_level")):
            out["hierarchy_level"] = errors.integer(data, "hierarchy_level", min_value=1)
        elif "parent_id" in data or current is None:
            out["hierarchy_level"] = parent.hierarchy_level + 1 if parent else 1

        if "is_active" in data:
            out["is_active"] = to_bool(data["is_active"])

        errors.raise_if_any()
        return out

    def create(self, data: dict[str, Any]) -> Designation:
        values = self._clean(data)
        values.setdefault("is_active", True)
        designation_id = self._designations.create(values)
        logger.info("Designation %s created: %s", designation_id, values["title"])
        return self.get(designation_id)

    def update(self, designation_id: int, data: dict[str, Any]) -> Designation:
        designation = self.get(designation_id)
        changes = diff_record(designation.to_dict(), data, fields=Designation.__dataclass_fields__.keys() - {"id"})
        if not changes:
            return designation
        values = self._clean(changes, current=designation)
        return self._designations.update(designation_id, values) or designation

    def delete(self, designation_id: int) -> None:
        self.get(designation_id)
        if self._designations.count_children(designation_id):
            raise ValidationError("Cannot delete a designation that has subordinate designations.")
        if self._users.count_by("designation_id", designation_id):
            raise ValidationError("Cannot delete a designation assigned to employees.")
        self._designations.delete_by_id(designation_id)
        logger.info("Designation %s deleted", designation_id)
