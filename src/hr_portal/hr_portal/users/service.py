from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.pagination import Page, normalize_page
from ..common.validators import FieldErrors, blank, require_non_empty, to_bool
from ..core.constants import MAX_PER_PAGE, MIN_PASSWORD_LENGTH
from ..core.enums import Role, values
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..devices.model import RequestInfo
from ..devices.service import DeviceService
from ..forms.changeset import diff_record
from ..org.repository import DepartmentRepository, DesignationRepository
from .model import User
from .profile import EMAIL_RE, check_org
from .repository import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "These credentials do not match our records."


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    role: Role
    session_id: str
    single_device_login: bool


class AuthService:
    """Use case: authenticate user (login / logout)."""

    def __init__(self, users: UserRepository, devices: DeviceService):
        self._users = users
        self._devices = devices

    def authenticate(self, login: str, password: str, info: RequestInfo) -> SessionUser:
        login = require_non_empty(login, "user_name")
        user = self._users.get_by_login(login)
        if not user or not user.active:
            raise AuthenticationError(INVALID_CREDENTIALS)

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False
        if not ok:
            raise AuthenticationError(INVALID_CREDENTIALS)

        self._devices.ensure_can_login(user, info)

        session_id = secrets.token_urlsafe(32)
        device = self._devices.register(user, info, session_id)
        logger.info("User %s logged in from %s", user.id, device.device_name)

        return SessionUser(
            user_id=user.id,
            name=user.name,
            role=user.role,
            session_id=session_id,
            single_device_login=user.single_device_login,
        )

    def logout(self, session_id: Optional[str]) -> None:
        if session_id:
            self._devices.deactivate_session(session_id)


class UserService:
    """Use case: manage users (admin / hr)."""

    def __init__(
        self,
        users: UserRepository,
        departments: DepartmentRepository,
        designations: DesignationRepository,
    ):
        self._users = users
        self._departments = departments
        self._designations = designations

    def get(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found.")
        return user

    def paginate(
        self,
        *,
        page: Any = 1,
        per_page: Any = None,
        search: Optional[str] = None,
        role: Optional[str] = None,
        department_id: Any = None,
    ) -> Page[User]:
        started = time.perf_counter()
        page_i, per_page_i = normalize_page(page, per_page, max_per_page=MAX_PER_PAGE)
        search = (search or "").strip() or None
        if search:
            page_i = 1
        role_e = Role(role) if role in values(Role) else None
        dept = int(department_id) if str(department_id or "").isdigit() else None

        rows, total = self._users.search(
            search=search,
            role=role_e,
            department_id=dept,
            offset=(page_i - 1) * per_page_i,
            limit=per_page_i,
        )
        logger.debug("users.paginate took %.1f ms", (time.perf_counter() - started) * 1000)
        return Page(items=list(rows), total=total, page=page_i, per_page=per_page_i)

    def _check_org(self, errors: FieldErrors, department_id: Optional[int], designation_id: Optional[int]) -> None:
        check_org(errors, self._departments, self._designations, department_id, designation_id)

    def _check_unique(self, errors: FieldErrors, values_: dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for field in ("email", "user_name", "employee_id", "phone"):
            value = values_.get(field)
            if value and self._users.exists_with(field, value, exclude_id=exclude_id):
                errors.add(field, f"The {field.replace('_', ' ')} has already been taken.")

    def create(self, data: dict[str, Any]) -> User:
        errors = FieldErrors()
        name = errors.required(data, "name")
        email = errors.required(data, "email")
        if email and not EMAIL_RE.match(email):
            errors.add("email", "The email must be a valid email address.")
        role = errors.choice(data, "role", values(Role))
        password = data.get("password") or ""
        if len(password) < MIN_PASSWORD_LENGTH:
            errors.add("password", f"The password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if "password_confirmation" in data and data["password_confirmation"] != password:
            errors.add("password", "The password confirmation does not match.")

        record = {
            "name": name,
            "email": email,
            "role": role,
            "user_name": errors.optional_str(data, "user_name", max_len=255),
            "phone": errors.optional_str(data, "phone", max_len=20),
            "employee_id": errors.optional_str(data, "employee_id", max_len=50),
            "department_id": errors.integer(data, "department_id", required=False, min_value=1),
            "designation_id": errors.integer(data, "designation_id", required=False, min_value=1),
            "report_to": errors.integer(data, "report_to", required=False, min_value=1),
            "date_of_joining": errors.date(data, "date_of_joining", required=False),
        }
        self._check_unique(errors, record)
        self._check_org(errors, record["department_id"], record["designation_id"])
        errors.raise_if_any()

        record.update(password_hash=generate_password_hash(password), active=True, single_device_login=False)
        user_id = self._users.create(record)
        logger.info("User %s created with role %s", user_id, role)
        return self.get(user_id)

    def update(self, user_id: int, data: dict[str, Any]) -> tuple[User, list[str]]:
        user = self.get(user_id)
        fields = {
            "name", "email", "role", "user_name", "phone", "employee_id",
            "department_id", "designation_id", "report_to", "date_of_joining",
        }
        changes = diff_record(user.to_dict(), data, fields=fields)
        password = data.get("password")

        errors = FieldErrors()
        if "name" in changes:
            changes["name"] = errors.required(changes, "name")
        if "email" in changes:
            email = errors.required(changes, "email")
            if email and not EMAIL_RE.match(email):
                errors.add("email", "The email must be a valid email address.")
        if "role" in changes:
            errors.choice(changes, "role", values(Role))
        for field in ("department_id", "designation_id", "report_to"):
            if field in changes:
                changes[field] = errors.integer(changes, field, required=False, min_value=1)
        if "date_of_joining" in changes:
            changes["date_of_joining"] = errors.date(changes, "date_of_joining", required=False)
        if changes.get("report_to") == user_id:
            errors.add("report_to", "A user cannot report to themselves.")
        if not blank(password) and len(password) < MIN_PASSWORD_LENGTH:
            errors.add("password", f"The password must be at least {MIN_PASSWORD_LENGTH} characters.")

        self._check_unique(errors, changes, exclude_id=user_id)
        if "department_id" in changes or "designation_id" in changes:
            self._check_org(
                errors,
                changes.get("department_id", user.department_id),
                changes.get("designation_id", user.designation_id),
            )
        errors.raise_if_any()

        if not blank(password):
            changes["password_hash"] = generate_password_hash(password)
        if not changes:
            return user, ["No changes were made."]

        updated = self._users.update(user_id, changes) or user
        logger.info("User %s updated: %s", user_id, ", ".join(sorted(k for k in changes if k != "password_hash")))
        return updated, ["User information updated successfully."]

    def toggle_status(self, user_id: int, active: Any = None) -> User:
        user = self.get(user_id)
        new_active = (not user.active) if active is None else to_bool(active)
        return self._users.update(user_id, {"active": new_active}) or user

    def delete(self, *, actor_id: int, actor_role: Role, user_id: int) -> None:
        if actor_role != Role.ADMIN:
            raise AuthorizationError("This action is unauthorized.")
        if actor_id == user_id:
            raise ValidationError("You cannot delete your own account.")

        user = self.get(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Administrator accounts cannot be deleted.")
        if not self._users.delete_by_id(user_id):
            raise ValidationError("Failed to delete user.")
        logger.info("User %s deleted by %s", user_id, actor_id)

    def update_department(self, user_id: int, department_id: Any) -> User:
        user = self.get(user_id)
        errors = FieldErrors()
        dept = errors.integer({"department": department_id}, "department", required=False, min_value=1)
        errors.raise_if_any()
        if dept is not None and not self._departments.get_by_id(dept):
            raise ValidationError.for_field("department", "The selected department does not exist.")

        changes: dict[str, Any] = {"department_id": dept}
        if user.designation_id is not None:
            designation = self._designations.get_by_id(user.designation_id)
            if designation is None or designation.department_id != dept:
                changes["designation_id"] = None
        return self._users.update(user_id, changes) or user

    def update_designation(self, user_id: int, designation_id: Any) -> User:
        user = self.get(user_id)
        errors = FieldErrors()
        wanted = errors.integer({"designation": designation_id}, "designation", required=False, min_value=1)
        errors.raise_if_any()
        if wanted is None:
            return self._users.update(user_id, {"designation_id": None}) or user
        designation = self._designations.get_by_id(wanted)
        if not designation:
            raise ValidationError.for_field("designation", "The selected designation does not exist.")
        changes = {"designation_id": designation.id, "department_id": designation.department_id}
        return self._users.update(user_id, changes) or user

