from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"


MANAGER_ROLES = frozenset({Role.ADMIN, Role.HR})


class MaritalStatus(str, Enum):
    SINGLE = "Single"
    MARRIED = "Married"


class DeviceType(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


class DailyWorkStatus(str, Enum):
    """RFI workflow status as stored in the database."""

    NEW = "new"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    RESUBMISSION = "resubmission"
    PENDING = "pending"
    EMERGENCY = "emergency"


class DailyWorkType(str, Enum):
    EMBANKMENT = "Embankment"
    STRUCTURE = "Structure"
    PAVEMENT = "Pavement"


class RoadSide(str, Enum):
    SR_R = "SR-R"
    SR_L = "SR-L"
    TR_BOTH = "TR-R/TR-L/Both"


class InspectionResult(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    CONDITIONAL = "conditional"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class HolidayType(str, Enum):
    PUBLIC = "public"
    RELIGIOUS = "religious"
    NATIONAL = "national"
    COMPANY = "company"
    OPTIONAL = "optional"


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EARLY_LEAVE = "early_leave"
    HALF_DAY = "half_day"


def values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]
