from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_MAX_IMAGE_BYTES, DEVICE_ONLINE_MINUTES, INACTIVE_DEVICE_RETENTION_DAYS
from .daily_works.importer import DailyWorkImporter
from .daily_works.mysql_daily_work_repository import (
    MySQLDailyWorkRepository,
    MySQLJurisdictionRepository,
    MySQLSummaryRepository,
)
from .daily_works.repository import DailyWorkRepository, JurisdictionRepository, SummaryRepository
from .daily_works.service import DailyWorkService
from .database.connection import DBConfig, DatabaseConnection
from .devices.mysql_device_repository import MySQLDeviceRepository
from .devices.repository import DeviceRepository
from .devices.service import DeviceService
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .holidays.service import HolidayService
from .org.mysql_org_repository import MySQLDepartmentRepository, MySQLDesignationRepository
from .org.repository import DepartmentRepository, DesignationRepository
from .org.service import DepartmentService, DesignationService
from .users.images import ProfileImageService
from .users.mysql_user_repository import MySQLUserRepository
from .users.profile import ProfileService
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    devices_repo: DeviceRepository
    departments_repo: DepartmentRepository
    designations_repo: DesignationRepository
    holidays_repo: HolidayRepository
    attendance_repo: AttendanceRepository
    daily_works_repo: DailyWorkRepository
    jurisdictions_repo: JurisdictionRepository
    summaries_repo: SummaryRepository

    device_service: DeviceService
    auth_service: AuthService
    user_service: UserService
    profile_service: ProfileService
    profile_image_service: ProfileImageService
    department_service: DepartmentService
    designation_service: DesignationService
    holiday_service: HolidayService
    attendance_service: AttendanceService
    daily_work_service: DailyWorkService
    daily_work_importer: DailyWorkImporter


def assemble(
    *,
    users_repo: UserRepository,
    devices_repo: DeviceRepository,
    departments_repo: DepartmentRepository,
    designations_repo: DesignationRepository,
    holidays_repo: HolidayRepository,
    attendance_repo: AttendanceRepository,
    daily_works_repo: DailyWorkRepository,
    jurisdictions_repo: JurisdictionRepository,
    summaries_repo: SummaryRepository,
    upload_folder: str | Path,
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    online_minutes: int = DEVICE_ONLINE_MINUTES,
    retention_days: int = INACTIVE_DEVICE_RETENTION_DAYS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of the given repositories (MySQL in the app, fakes in tests)."""
    device_service = DeviceService(
        devices_repo, users_repo, online_minutes=online_minutes, retention_days=retention_days
    )
    holiday_service = HolidayService(holidays_repo)
    daily_work_service = DailyWorkService(daily_works_repo, jurisdictions_repo, summaries_repo, users_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        devices_repo=devices_repo,
        departments_repo=departments_repo,
        designations_repo=designations_repo,
        holidays_repo=holidays_repo,
        attendance_repo=attendance_repo,
        daily_works_repo=daily_works_repo,
        jurisdictions_repo=jurisdictions_repo,
        summaries_repo=summaries_repo,
        device_service=device_service,
        auth_service=AuthService(users_repo, device_service),
        user_service=UserService(users_repo, departments_repo, designations_repo),
        profile_service=ProfileService(users_repo, departments_repo, designations_repo),
        profile_image_service=ProfileImageService(users_repo, upload_folder, max_bytes=max_image_bytes),
        department_service=DepartmentService(departments_repo, users_repo, designations_repo),
        designation_service=DesignationService(designations_repo, departments_repo, users_repo),
        holiday_service=holiday_service,
        attendance_service=AttendanceService(attendance_repo, users_repo, holiday_service),
        daily_work_service=daily_work_service,
        daily_work_importer=DailyWorkImporter(daily_works_repo, jurisdictions_repo, daily_work_service),
    )


def build_container(
    *,
    db_config: dict,
    upload_folder: str | Path,
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    online_minutes: int = DEVICE_ONLINE_MINUTES,
    retention_days: int = INACTIVE_DEVICE_RETENTION_DAYS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return assemble(
        users_repo=MySQLUserRepository(conn),
        devices_repo=MySQLDeviceRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        designations_repo=MySQLDesignationRepository(conn),
        holidays_repo=MySQLHolidayRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        daily_works_repo=MySQLDailyWorkRepository(conn),
        jurisdictions_repo=MySQLJurisdictionRepository(conn),
        summaries_repo=MySQLSummaryRepository(conn),
        upload_folder=upload_folder,
        max_image_bytes=max_image_bytes,
        online_minutes=online_minutes,
        retention_days=retention_days,
        conn=conn,
    )
