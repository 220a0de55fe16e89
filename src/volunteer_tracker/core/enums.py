from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for permission checks."""

    PENDING = "PENDING"
    VOLUNTEER = "VOLUNTEER"
    ADMIN = "ADMIN"


class ShiftStatus(str, Enum):
    OPEN = "OPEN"
    FULL = "FULL"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class GroupRole(str, Enum):
    """Role of a user inside a volunteer group."""

    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class AttendanceState(str, Enum):
    """Per (volunteer, shift) time-tracking state."""

    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"


class Action(str, Enum):
    """Capabilities evaluated by common.permissions."""

    CHECK_OUT = "CHECK_OUT"
    SIGN_UP = "SIGN_UP"
    LOG_HOURS = "LOG_HOURS"
    APPROVE_HOURS = "APPROVE_HOURS"
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_SHIFTS = "MANAGE_SHIFTS"
    MANAGE_GROUP = "MANAGE_GROUP"
    VIEW_GROUP_REPORT = "VIEW_GROUP_REPORT"
    VIEW_REPORTS = "VIEW_REPORTS"
