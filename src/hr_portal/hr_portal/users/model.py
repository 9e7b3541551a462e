from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import iso
from ..core.enums import Role

PROFILE_FIELDS = (
    "name",
    "user_name",
    "email",
    "phone",
    "employee_id",
    "department_id",
    "designation_id",
    "report_to",
    "date_of_joining",
    "birthday",
    "gender",
    "address",
    "about",
    "nid",
    "passport_no",
    "passport_exp_date",
    "nationality",
    "religion",
    "marital_status",
    "employment_of_spouse",
    "number_of_children",
    "emergency_contact_primary_name",
    "emergency_contact_primary_relationship",
    "emergency_contact_primary_phone",
    "emergency_contact_secondary_name",
    "emergency_contact_secondary_relationship",
    "emergency_contact_secondary_phone",
    "bank_name",
    "bank_account_no",
    "ifsc_code",
    "pan_no",
    "family_member_name",
    "family_member_relationship",
    "family_member_dob",
    "family_member_phone",
    "profile_image",
)


@dataclass(frozen=True)
class User:
    """Employee account plus profile.

    ``password_hash`` never leaves the server; ``to_dict`` leaves it out.
    """

    id: int
    name: str
    email: str
    password_hash: str
    role: Role
    user_name: Optional[str] = None
    phone: Optional[str] = None
    employee_id: Optional[str] = None
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    report_to: Optional[int] = None
    date_of_joining: Optional[date] = None
    active: bool = True
    birthday: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    about: Optional[str] = None
    nid: Optional[str] = None
    passport_no: Optional[str] = None
    passport_exp_date: Optional[date] = None
    nationality: Optional[str] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None
    employment_of_spouse: Optional[str] = None
    number_of_children: Optional[int] = None
    emergency_contact_primary_name: Optional[str] = None
    emergency_contact_primary_relationship: Optional[str] = None
    emergency_contact_primary_phone: Optional[str] = None
    emergency_contact_secondary_name: Optional[str] = None
    emergency_contact_secondary_relationship: Optional[str] = None
    emergency_contact_secondary_phone: Optional[str] = None
    bank_name: Optional[str] = None
    bank_account_no: Optional[str] = None
    ifsc_code: Optional[str] = None
    pan_no: Optional[str] = None
    family_member_name: Optional[str] = None
    family_member_relationship: Optional[str] = None
    family_member_dob: Optional[date] = None
    family_member_phone: Optional[str] = None
    profile_image: Optional[str] = None
    single_device_login: bool = False
    device_reset_at: Optional[datetime] = None
    device_reset_reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("password_hash")
        data["role"] = self.role.value
        for key, value in data.items():
            if isinstance(value, (date, datetime)):
                data[key] = iso(value)
        return data


COLUMNS = tuple(f.name for f in fields(User))
