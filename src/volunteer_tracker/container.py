from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import TimeTrackingService
from .database.connection import DBConfig, DatabaseConnection
from .groups.mysql_group_repository import MySQLGroupRepository
from .groups.repository import GroupRepository
from .groups.service import GroupService
from .hours.mysql_hours_repository import MySQLHourLedgerRepository
from .hours.repository import HourLedgerRepository
from .hours.service import HourLedgerService, HoursReportService
from .notifications.notifier import LoggingNotifier, Notifier, NullNotifier
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    shifts_repo: ShiftRepository
    groups_repo: GroupRepository
    attendance_repo: AttendanceRepository
    hours_repo: HourLedgerRepository

    auth_service: AuthService
    user_service: UserService
    shift_service: ShiftService
    group_service: GroupService
    time_tracking_service: TimeTrackingService
    hour_ledger_service: HourLedgerService
    hours_report_service: HoursReportService


def build_services(
    *,
    users_repo: UserRepository,
    shifts_repo: ShiftRepository,
    groups_repo: GroupRepository,
    attendance_repo: AttendanceRepository,
    hours_repo: HourLedgerRepository,
    notifier: Notifier | None = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over any set of repositories (MySQL or in-memory)."""

    return Container(
        conn=conn,
        users_repo=users_repo,
        shifts_repo=shifts_repo,
        groups_repo=groups_repo,
        attendance_repo=attendance_repo,
        hours_repo=hours_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, notifier=notifier),
        shift_service=ShiftService(shifts_repo, groups_repo, notifier=notifier),
        group_service=GroupService(groups_repo),
        time_tracking_service=TimeTrackingService(attendance_repo, shifts_repo, hours_repo, notifier=notifier),
        hour_ledger_service=HourLedgerService(hours_repo, groups_repo, notifier=notifier),
        hours_report_service=HoursReportService(hours_repo, attendance_repo, shifts_repo, groups_repo, users_repo),
    )


def build_container(*, db_config: dict, notifications_enabled: bool = True) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return build_services(
        users_repo=MySQLUserRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        groups_repo=MySQLGroupRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        hours_repo=MySQLHourLedgerRepository(conn),
        notifier=LoggingNotifier() if notifications_enabled else NullNotifier(),
        conn=conn,
    )
