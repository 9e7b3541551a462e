from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from src.hr_portal.hr_portal.core.enums import Role
from src.hr_portal.hr_portal.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DeviceBlockedError,
    NotFoundError,
    ValidationError,
)
from src.hr_portal.hr_portal.devices.model import RequestInfo
from src.hr_portal.hr_portal.users.service import INVALID_CREDENTIALS
from tests.fakes import CHROME_WINDOWS, FIREFOX_LINUX


@pytest.fixture
def org(container):
    engineering = container.departments_repo.add(name="Engineering")
    finance = container.departments_repo.add(name="Finance")
    engineer = container.designations_repo.add(title="Engineer", department_id=engineering.id)
    return engineering, finance, engineer


def test_create_user_hashes_password(container, org):
    engineering, _, engineer = org
    user = container.user_service.create(
        {
            "name": "Frank",
            "email": "frank@example.com",
            "role": "employee",
            "password": "longenough",
            "password_confirmation": "longenough",
            "department_id": engineering.id,
            "designation_id": engineer.id,
        }
    )

    assert user.role == Role.EMPLOYEE
    assert user.active is True
    assert check_password_hash(user.password_hash, "longenough")
    assert "password_hash" not in user.to_dict()


def test_create_user_collects_every_error(container, org, people):
    _, finance, engineer = org
    with pytest.raises(ValidationError) as exc:
        container.user_service.create(
            {
                "name": "",
                "email": people["alice"].email,
                "role": "boss",
                "password": "short",
                "department_id": finance.id,
                "designation_id": engineer.id,
            }
        )

    errors = exc.value.errors
    assert exc.value.status_code == 422
    assert set(errors) == {"name", "email", "role", "password", "designation_id"}
    assert errors["email"] == ["The email has already been taken."]
    assert errors["designation_id"] == ["The designation does not belong to the selected department."]


def test_update_reports_no_changes(container, people):
    alice = people["alice"]
    user, messages = container.user_service.update(alice.id, {"name": "Alice", "email": alice.email})
    assert messages == ["No changes were made."]
    assert user == alice


def test_update_writes_only_the_difference(container, people):
    alice = people["alice"]
    user, messages = container.user_service.update(alice.id, {"name": "Alice B.", "email": alice.email, "password": ""})

    assert messages == ["User information updated successfully."]
    assert user.name == "Alice B."
    assert user.password_hash == alice.password_hash


def test_paginate_search_resets_page(container, people):
    page = container.user_service.paginate(page=3, per_page=10, search="ali")

    assert page.page == 1
    assert [u.name for u in page.items] == ["Alice"]
    assert page.total == 1


def test_delete_rules(container, people):
    service = container.user_service
    admin, hr, bob = people["admin"], people["hr"], people["bob"]

    with pytest.raises(AuthorizationError):
        service.delete(actor_id=hr.id, actor_role=Role.HR, user_id=bob.id)
    with pytest.raises(ValidationError):
        service.delete(actor_id=admin.id, actor_role=Role.ADMIN, user_id=admin.id)

    other_admin = container.users_repo.add(name="Root", role=Role.ADMIN)
    with pytest.raises(ValidationError):
        service.delete(actor_id=admin.id, actor_role=Role.ADMIN, user_id=other_admin.id)

    service.delete(actor_id=admin.id, actor_role=Role.ADMIN, user_id=bob.id)
    with pytest.raises(NotFoundError):
        service.get(bob.id)


def test_designation_change_moves_department(container, org, people):
    engineering, finance, engineer = org
    alice = people["alice"]

    user = container.user_service.update_designation(alice.id, engineer.id)
    assert (user.department_id, user.designation_id) == (engineering.id, engineer.id)

    user = container.user_service.update_department(alice.id, finance.id)
    assert (user.department_id, user.designation_id) == (finance.id, None)


def test_org_changes_reject_non_numeric_ids(container, org, people):
    alice = people["alice"]

    with pytest.raises(ValidationError) as exc:
        container.user_service.update_department(alice.id, "sales")
    assert exc.value.errors == {"department": ["The department must be an integer."]}

    with pytest.raises(ValidationError) as exc:
        container.user_service.update_designation(alice.id, "lead")
    assert exc.value.errors == {"designation": ["The designation must be an integer."]}


def test_toggle_status(container, people):
    bob = people["bob"]
    assert container.user_service.toggle_status(bob.id).active is False
    assert container.user_service.toggle_status(bob.id, "true").active is True


def test_authenticate_by_user_name_or_email(container, people):
    info = RequestInfo(user_agent=CHROME_WINDOWS)

    by_name = container.auth_service.authenticate("alice", "secret123", info)
    by_email = container.auth_service.authenticate(people["alice"].email, "secret123", info)

    assert by_name.user_id == by_email.user_id == people["alice"].id
    assert by_name.session_id != by_email.session_id
    assert len(container.devices_repo.list_for_user(people["alice"].id)) == 1


def test_authenticate_rejects_bad_credentials(container, people):
    info = RequestInfo(user_agent=CHROME_WINDOWS)
    container.users_repo.update(people["bob"].id, {"active": False})

    for login, password in (("alice", "wrong"), ("nobody", "secret123"), ("bob", "secret123")):
        with pytest.raises(AuthenticationError) as exc:
            container.auth_service.authenticate(login, password, info)
        assert exc.value.message == INVALID_CREDENTIALS


def test_locked_account_rejects_second_device(container, people):
    alice = container.users_repo.update(people["alice"].id, {"single_device_login": True})
    container.auth_service.authenticate("alice", "secret123", RequestInfo(user_agent=CHROME_WINDOWS))

    with pytest.raises(DeviceBlockedError):
        container.auth_service.authenticate("alice", "secret123", RequestInfo(user_agent=FIREFOX_LINUX))
    assert len(container.devices_repo.list_for_user(alice.id)) == 1
