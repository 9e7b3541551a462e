from __future__ import annotations

import pytest

from src.hr_portal.hr_portal.core.enums import Role
from src.hr_portal.hr_portal.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.hr_portal.hr_portal.users.profile import NO_CHANGES


@pytest.fixture
def married(container):
    return container.users_repo.add(
        name="Carol",
        marital_status="Married",
        employment_of_spouse="Engineer",
        number_of_children=2,
        nationality="Bangladeshi",
    )


def test_single_clears_spouse_fields_on_save(container, married):
    user, messages = container.profile_service.update(
        actor_id=married.id,
        actor_role=Role.EMPLOYEE,
        payload={"ruleSet": "personal", "id": married.id, "marital_status": "Single"},
    )

    assert user.marital_status == "Single"
    assert user.employment_of_spouse is None
    assert user.number_of_children is None
    assert user.nationality == "Bangladeshi"
    assert sorted(messages) == [
        "Employment of spouse updated successfully.",
        "Marital status updated successfully.",
        "Number of children updated successfully.",
    ]


def test_spouse_fields_stay_empty_while_single(container):
    single = container.users_repo.add(name="Dan", marital_status="Single")

    user, messages = container.profile_service.update(
        actor_id=single.id,
        actor_role=Role.EMPLOYEE,
        payload={"ruleSet": "personal", "number_of_children": "3", "employment_of_spouse": "Nurse"},
    )

    assert messages == [NO_CHANGES]
    assert user.number_of_children is None


def test_only_changed_fields_are_written(container, married):
    user, messages = container.profile_service.update(
        actor_id=married.id,
        actor_role=Role.EMPLOYEE,
        payload={"ruleSet": "personal", "nationality": "Bangladeshi", "religion": "Islam", "number_of_children": "2"},
    )

    assert messages == ["Religion updated successfully."]
    assert user.religion == "Islam"


def test_unchanged_submission_reports_no_changes(container, married):
    _, messages = container.profile_service.update(
        actor_id=married.id,
        actor_role=Role.EMPLOYEE,
        payload={"ruleSet": "profile", "name": "Carol", "email": married.email},
    )
    assert messages == [NO_CHANGES]


def test_profile_rules_validate_fields(container, married, people, fixed_now):
    with pytest.raises(ValidationError) as exc:
        container.profile_service.update(
            actor_id=married.id,
            actor_role=Role.EMPLOYEE,
            payload={
                "ruleSet": "profile",
                "email": people["alice"].email,
                "birthday": "2030-01-01",
                "phone": "x" * 21,
            },
        )

    errors = exc.value.errors
    assert errors["email"] == ["The email has already been taken."]
    assert errors["birthday"] == ["The birthday must be a date before today."]
    assert errors["phone"] == ["The phone may not be greater than 20 characters."]


def test_required_group_fields(container, married):
    with pytest.raises(ValidationError) as exc:
        container.profile_service.update(
            actor_id=married.id,
            actor_role=Role.EMPLOYEE,
            payload={"ruleSet": "emergency", "emergency_contact_primary_name": "Eve"},
        )

    assert set(exc.value.errors) == {
        "emergency_contact_primary_relationship",
        "emergency_contact_primary_phone",
    }


def test_department_alias_and_report_to_self(container, married):
    with pytest.raises(ValidationError) as exc:
        container.profile_service.update(
            actor_id=married.id,
            actor_role=Role.HR,
            payload={"ruleSet": "profile", "id": married.id, "report_to": married.id},
        )
    assert exc.value.errors["report_to"] == ["A user cannot report to themselves."]

    engineering = container.departments_repo.add(name="Engineering")
    user, _ = container.profile_service.update(
        actor_id=married.id,
        actor_role=Role.HR,
        payload={"ruleSet": "profile", "id": married.id, "department": str(engineering.id)},
    )
    assert user.department_id == engineering.id


def test_employee_cannot_move_themselves(container, people):
    alice = people["alice"]

    with pytest.raises(ValidationError) as exc:
        container.profile_service.update(
            actor_id=alice.id,
            actor_role=Role.EMPLOYEE,
            payload={"ruleSet": "profile", "department_id": 999, "report_to": 12345},
        )

    assert exc.value.errors == {
        "department_id": ["Only HR can change the department id."],
        "report_to": ["Only HR can change the report to."],
    }
    assert container.users_repo.get_by_id(alice.id).department_id is None


def test_employee_form_may_echo_the_current_placement(container, people):
    engineering = container.departments_repo.add(name="Engineering")
    alice = container.users_repo.update(people["alice"].id, {"department_id": engineering.id})

    user, messages = container.profile_service.update(
        actor_id=alice.id,
        actor_role=Role.EMPLOYEE,
        payload={"ruleSet": "profile", "department": str(engineering.id), "about": "Site engineer"},
    )

    assert messages == ["About updated successfully."]
    assert user.department_id == engineering.id


def test_hr_cannot_point_a_profile_at_missing_records(container, people):
    with pytest.raises(ValidationError) as exc:
        container.profile_service.update(
            actor_id=people["hr"].id,
            actor_role=Role.HR,
            payload={"ruleSet": "profile", "id": people["alice"].id, "department_id": 999, "report_to": 12345},
        )

    assert exc.value.errors == {
        "department_id": ["The selected department does not exist."],
        "report_to": ["The selected supervisor does not exist."],
    }


def test_non_numeric_profile_id_is_a_field_error(container, people):
    with pytest.raises(ValidationError) as exc:
        container.profile_service.update(
            actor_id=people["alice"].id,
            actor_role=Role.EMPLOYEE,
            payload={"ruleSet": "profile", "id": "me", "about": "Hi"},
        )

    assert exc.value.errors == {"id": ["The id must be an integer."]}


def test_employee_cannot_edit_someone_else(container, married, people):
    with pytest.raises(AuthorizationError):
        container.profile_service.update(
            actor_id=people["alice"].id,
            actor_role=Role.EMPLOYEE,
            payload={"ruleSet": "bank", "id": married.id, "bank_name": "X", "bank_account_no": "1"},
        )


def test_manager_can_edit_someone_else(container, married, people):
    user, _ = container.profile_service.update(
        actor_id=people["hr"].id,
        actor_role=Role.HR,
        payload={"ruleSet": "bank", "id": married.id, "bank_name": "City Bank", "bank_account_no": "001"},
    )
    assert (user.bank_name, user.bank_account_no) == ("City Bank", "001")


def test_unknown_rule_set_and_user(container, people):
    with pytest.raises(ValidationError):
        container.profile_service.update(actor_id=1, actor_role=Role.ADMIN, payload={"ruleSet": "nope"})
    with pytest.raises(NotFoundError):
        container.profile_service.update(actor_id=1, actor_role=Role.ADMIN, payload={"id": 999})
