from __future__ import annotations

import pytest

from src.hr_portal.hr_portal.common.hierarchy import build_tree, creates_cycle
from src.hr_portal.hr_portal.core.exceptions import NotFoundError, ValidationError


def test_create_department_and_reject_duplicate_name(container):
    departments = container.department_service
    created = departments.create({"name": "Engineering", "code": "ENG"})

    assert created.is_active is True
    with pytest.raises(ValidationError) as exc:
        departments.create({"name": "engineering", "code": "ENG"})
    assert set(exc.value.errors) == {"name", "code"}


def test_department_parent_cannot_form_a_cycle(container):
    departments = container.department_service
    root = departments.create({"name": "Operations"})
    child = departments.create({"name": "Field", "parent_id": root.id})

    with pytest.raises(ValidationError) as exc:
        departments.update(root.id, {"parent_id": child.id})
    assert exc.value.errors["parent_id"] == ["The selected parent would create a circular department hierarchy."]

    with pytest.raises(ValidationError):
        departments.update(root.id, {"parent_id": root.id})


def test_department_tree(container):
    departments = container.department_service
    root = departments.create({"name": "Operations"})
    departments.create({"name": "Field", "parent_id": root.id})

    tree = departments.tree()
    assert [n["name"] for n in tree] == ["Operations"]
    assert [n["name"] for n in tree[0]["children"]] == ["Field"]


def test_department_delete_guards(container, people):
    departments = container.department_service
    root = departments.create({"name": "Operations"})
    child = departments.create({"name": "Field", "parent_id": root.id})

    with pytest.raises(ValidationError):
        departments.delete(root.id)

    container.users_repo.update(people["alice"].id, {"department_id": child.id})
    with pytest.raises(ValidationError):
        departments.delete(child.id)

    container.users_repo.update(people["alice"].id, {"department_id": None})
    departments.delete(child.id)
    departments.delete(root.id)
    with pytest.raises(NotFoundError):
        departments.get(root.id)


def test_department_update_with_no_changes_is_a_no_op(container):
    departments = container.department_service
    dept = departments.create({"name": "Finance"})
    assert departments.update(dept.id, {"name": "Finance"}) == dept


def test_department_stats(container, people):
    departments = container.department_service
    root = departments.create({"name": "Operations", "manager_id": people["hr"].id})
    departments.create({"name": "Field", "parent_id": root.id, "is_active": False})
    container.users_repo.update(people["bob"].id, {"department_id": root.id})

    stats = departments.stats()
    assert (stats["total"], stats["active"], stats["inactive"], stats["root"], stats["with_manager"]) == (2, 1, 1, 1, 1)
    assert stats["employees"][root.id] == 1


def test_designation_levels_follow_parent(container):
    dept = container.department_service.create({"name": "Engineering"})
    designations = container.designation_service

    lead = designations.create({"title": "Lead", "department_id": dept.id})
    engineer = designations.create({"title": "Engineer", "department_id": dept.id, "parent_id": lead.id})

    assert lead.hierarchy_level == 1
    assert engineer.hierarchy_level == 2
    assert [d.title for d in designations.list(dept.id)] == ["Lead", "Engineer"]


def test_designation_title_is_unique_per_department(container):
    eng = container.department_service.create({"name": "Engineering"})
    fin = container.department_service.create({"name": "Finance"})
    designations = container.designation_service
    designations.create({"title": "Manager", "department_id": eng.id})

    with pytest.raises(ValidationError) as exc:
        designations.create({"title": "manager", "department_id": eng.id})
    assert exc.value.errors["title"] == ["This designation already exists in the department."]

    assert designations.create({"title": "Manager", "department_id": fin.id}).department_id == fin.id


def test_designation_delete_guards(container, people):
    dept = container.department_service.create({"name": "Engineering"})
    designations = container.designation_service
    lead = designations.create({"title": "Lead", "department_id": dept.id})

    container.users_repo.update(people["alice"].id, {"designation_id": lead.id})
    with pytest.raises(ValidationError):
        designations.delete(lead.id)
    with pytest.raises(ValidationError):
        container.department_service.delete(dept.id)


def test_hierarchy_helpers():
    parents = {1: None, 2: 1, 3: 2}
    assert creates_cycle(1, 3, parents.get) is True
    assert creates_cycle(3, 1, parents.get) is False
    assert creates_cycle(None, 1, parents.get) is False

    tree = build_tree([{"id": 1, "parent_id": None}, {"id": 2, "parent_id": 1}, {"id": 3, "parent_id": 99}])
    assert [n["id"] for n in tree] == [1, 3]
    assert tree[0]["children"][0]["id"] == 2
