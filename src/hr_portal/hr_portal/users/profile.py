"""Profile editing by field group.

Each edit form posts a ``ruleSet`` naming its field group together with the
form values. Only the group's fields are read, validated and compared with
the stored record; unchanged fields are never written.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from ..common.datetime_utils import now_local
from ..common.validators import FieldErrors, blank
from ..core.enums import MANAGER_ROLES, MaritalStatus, Role, values
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..forms.changeset import SPOUSE_DEPENDENT_FIELDS, diff_record
from ..org.repository import DepartmentRepository, DesignationRepository
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
NO_CHANGES = "No changes were made."


@dataclass(frozen=True)
class Rule:
    kind: str = "str"
    required: bool = False
    max_len: Optional[int] = 255
    unique: bool = False


RULE_SETS: dict[str, dict[str, Rule]] = {
    "profile": {
        "name": Rule(required=True),
        "email": Rule("email", required=True, unique=True),
        "phone": Rule(max_len=20, unique=True),
        "employee_id": Rule(max_len=50, unique=True),
        "gender": Rule(max_len=20),
        "birthday": Rule("past_date"),
        "date_of_joining": Rule("date"),
        "address": Rule(),
        "about": Rule(max_len=1000),
        "department_id": Rule("int"),
        "designation_id": Rule("int"),
        "report_to": Rule("int"),
    },
    "personal": {
        "passport_no": Rule(max_len=50),
        "passport_exp_date": Rule("date"),
        "nationality": Rule(max_len=100),
        "religion": Rule(max_len=100),
        "marital_status": Rule("marital"),
        "employment_of_spouse": Rule(),
        "number_of_children": Rule("int"),
        "nid": Rule(max_len=50),
    },
    "emergency": {
        "emergency_contact_primary_name": Rule(required=True),
        "emergency_contact_primary_relationship": Rule(required=True, max_len=100),
        "emergency_contact_primary_phone": Rule(required=True, max_len=20),
        "emergency_contact_secondary_name": Rule(),
        "emergency_contact_secondary_relationship": Rule(max_len=100),
        "emergency_contact_secondary_phone": Rule(max_len=20),
    },
    "family": {
        "family_member_name": Rule(required=True),
        "family_member_relationship": Rule(required=True, max_len=100),
        "family_member_dob": Rule("past_date"),
        "family_member_phone": Rule(max_len=20),
    },
    "bank": {
        "bank_name": Rule(required=True),
        "bank_account_no": Rule(required=True, max_len=50),
        "ifsc_code": Rule(max_len=20),
        "pan_no": Rule(max_len=20),
    },
}

# keys the profile form posts under their relation name
ALIASES = {"department": "department_id", "designation": "designation_id"}

# placement in the organisation; only HR and admins move people around
ORG_FIELDS = ("department_id", "designation_id", "report_to")


def _label(field: str) -> str:
    return field.replace("_", " ").capitalize()


def check_org(
    errors: FieldErrors,
    departments: DepartmentRepository,
    designations: DesignationRepository,
    department_id: Optional[int],
    designation_id: Optional[int],
) -> None:
    """Record errors for a missing department or designation, or a designation outside the department."""
    if department_id is not None and not departments.get_by_id(department_id):
        errors.add("department_id", "The selected department does not exist.")
    if designation_id is not None:
        designation = designations.get_by_id(designation_id)
        if not designation:
            errors.add("designation_id", "The selected designation does not exist.")
        elif department_id is not None and designation.department_id != department_id:
            errors.add("designation_id", "The designation does not belong to the selected department.")


class ProfileService:
    def __init__(self, users: UserRepository, departments: DepartmentRepository, designations: DesignationRepository):
        self._users = users
        self._departments = departments
        self._designations = designations

    def update(self, *, actor_id: int, actor_role: Role, payload: dict[str, Any]) -> tuple[User, list[str]]:
        rule_set = payload.get("ruleSet") or "profile"
        rules = RULE_SETS.get(rule_set)
        if rules is None:
            raise ValidationError.for_field("ruleSet", f"Unknown rule set: {rule_set}.")

        errors = FieldErrors()
        target_id = errors.integer(payload, "id", required=False, min_value=1) or actor_id
        errors.raise_if_any()
        if target_id != actor_id and actor_role not in MANAGER_ROLES:
            raise AuthorizationError("You can only update your own profile.")

        user = self._users.get_by_id(target_id)
        if not user:
            raise NotFoundError("User not found.")
        stored = user.to_dict()

        data = {ALIASES.get(k, k): v for k, v in payload.items()}
        incoming = {k: data[k] for k in rules if k in data}

        single = MaritalStatus.SINGLE.value
        if "marital_status" in rules and (incoming.get("marital_status") or stored.get("marital_status")) == single:
            for dependent in SPOUSE_DEPENDENT_FIELDS:
                incoming[dependent] = None

        cleaned = self._validate(rules, incoming, stored, user.id, may_move=actor_role in MANAGER_ROLES)

        changes = diff_record(stored, cleaned)
        if not changes:
            return user, [NO_CHANGES]

        updated = self._users.update(user.id, changes) or user
        logger.info("Profile %s of user %s updated by %s: %s", rule_set, user.id, actor_id, ", ".join(sorted(changes)))
        return updated, [f"{_label(k)} updated successfully." for k in changes]

    def _validate(
        self,
        rules: dict[str, Rule],
        incoming: dict[str, Any],
        stored: dict[str, Any],
        user_id: int,
        *,
        may_move: bool = False,
    ) -> dict[str, Any]:
        errors = FieldErrors()
        cleaned: dict[str, Any] = {}

        for field, rule in rules.items():
            if rule.required and blank(incoming.get(field, stored.get(field))):
                errors.add(field, f"The {_label(field).lower()} field is required.")
                continue
            if field not in incoming:
                continue

            value = incoming[field]
            if blank(value):
                cleaned[field] = None
                continue

            converted = self._convert(field, rule, incoming, errors)
            if field in errors:
                continue
            if rule.unique and self._users.exists_with(field, converted, exclude_id=user_id):
                errors.add(field, f"The {_label(field).lower()} has already been taken.")
                continue
            cleaned[field] = converted

        self._check_placement(errors, cleaned, stored, user_id, may_move)
        errors.raise_if_any()
        return cleaned

    def _check_placement(
        self, errors: FieldErrors, cleaned: dict[str, Any], stored: dict[str, Any], user_id: int, may_move: bool
    ) -> None:
        moved = [f for f in ORG_FIELDS if f in cleaned and f not in errors and cleaned[f] != stored.get(f)]
        if not moved:
            return
        if not may_move:
            for field in moved:
                errors.add(field, f"Only HR can change the {_label(field).lower()}.")
            return

        if "department_id" in moved or "designation_id" in moved:
            check_org(
                errors,
                self._departments,
                self._designations,
                cleaned.get("department_id", stored.get("department_id")),
                cleaned.get("designation_id", stored.get("designation_id")),
            )
        report_to = cleaned.get("report_to")
        if "report_to" in moved and report_to is not None:
            if report_to == user_id:
                errors.add("report_to", "A user cannot report to themselves.")
            elif not self._users.get_by_id(report_to):
                errors.add("report_to", "The selected supervisor does not exist.")

    @staticmethod
    def _convert(field: str, rule: Rule, data: dict[str, Any], errors: FieldErrors) -> Any:
        if rule.kind == "int":
            return errors.integer(data, field, required=False, min_value=0)
        if rule.kind in {"date", "past_date"}:
            parsed = errors.date(data, field, required=False)
            if parsed and rule.kind == "past_date" and parsed >= now_local().date():
                errors.add(field, f"The {_label(field).lower()} must be a date before today.")
            return parsed
        if rule.kind == "marital":
            return errors.choice(data, field, values(MaritalStatus), required=False)

        text = errors.optional_str(data, field, max_len=rule.max_len)
        if rule.kind == "email" and text and not EMAIL_RE.match(text):
            errors.add(field, f"The {field} must be a valid email address.")
        return text
