from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from volunteer_tracker.attendance.model import AttendanceRecord
from volunteer_tracker.common.permissions import Actor
from volunteer_tracker.container import build_services
from volunteer_tracker.core.enums import GroupRole, Role, ShiftStatus
from volunteer_tracker.groups.model import Group, GroupMember, GroupMembership
from volunteer_tracker.hours.model import GroupReportRow, HourLedgerEntry, NewHourEntry
from volunteer_tracker.main import create_app
from volunteer_tracker.notifications.notifier import RecordingNotifier
from volunteer_tracker.shifts.model import Shift
from volunteer_tracker.users.model import User

ADMIN_ID = 1
VOLUNTEER_ID = 2
OTHER_VOLUNTEER_ID = 3
PENDING_ID = 4

SHIFT_ID = 10
GROUP_ID = 20


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self._id = 100

    def add(self, user: User) -> User:
        self.users[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def create_user(self, *, name, email, password_hash, role, phone=None) -> int:
        self._id += 1
        self.users[self._id] = User(
            user_id=self._id, name=name, email=email, password_hash=password_hash, role=role, phone=phone
        )
        return self._id

    def set_role(self, user_id: int, *, role: Role) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, role=role)
        return True

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, is_active=is_active)
        return True

    def list_by_role(self, role: Role):
        return [u for u in self.users.values() if u.role == role and u.is_active]

    def list_all(self):
        return list(self.users.values())


class InMemoryShifts:
    def __init__(self):
        self.shifts: dict[int, Shift] = {}
        self.roster: dict[int, set[int]] = {}
        self._id = 100

    def add(self, shift: Shift) -> Shift:
        self.shifts[shift.shift_id] = shift
        self.roster.setdefault(shift.shift_id, set())
        return shift

    def assign(self, shift_id: int, user_id: int) -> None:
        self.roster.setdefault(shift_id, set()).add(user_id)

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        shift = self.shifts.get(int(shift_id))
        if not shift:
            return None
        return replace(shift, volunteer_count=len(self.roster.get(shift.shift_id, ())))

    def list_upcoming(self, *, now: datetime, limit: int = 100):
        items = [
            self.get_by_id(s.shift_id)
            for s in self.shifts.values()
            if s.end_time >= now and s.status != ShiftStatus.CANCELLED
        ]
        items.sort(key=lambda s: s.start_time)
        return items[:limit]

    def list_for_volunteer(self, user_id: int):
        return [self.get_by_id(sid) for sid, users in self.roster.items() if user_id in users]

    def create(self, *, title, location, start_time, end_time, capacity, description=None, group_id=None) -> int:
        self._id += 1
        self.add(
            Shift(
                shift_id=self._id,
                title=title,
                location=location,
                start_time=start_time,
                end_time=end_time,
                capacity=capacity,
                description=description,
                group_id=group_id,
            )
        )
        return self._id

    def set_status(self, shift_id: int, *, status: ShiftStatus) -> bool:
        shift = self.shifts.get(int(shift_id))
        if not shift:
            return False
        self.shifts[shift.shift_id] = replace(shift, status=status)
        return True

    def is_assigned(self, *, shift_id: int, user_id: int) -> bool:
        return user_id in self.roster.get(int(shift_id), set())

    def add_volunteer(self, *, shift_id: int, user_id: int) -> bool:
        roster = self.roster.setdefault(int(shift_id), set())
        if user_id in roster:
            return False
        roster.add(user_id)
        return True

    def remove_volunteer(self, *, shift_id: int, user_id: int) -> bool:
        roster = self.roster.get(int(shift_id), set())
        if user_id not in roster:
            return False
        roster.discard(user_id)
        return True

    def count_upcoming_for_volunteer(self, *, user_id: int, now: datetime) -> int:
        return sum(
            1
            for sid, users in self.roster.items()
            if user_id in users
            and self.shifts[sid].start_time > now
            and self.shifts[sid].status != ShiftStatus.CANCELLED
        )

    def count_all(self, *, starting_from: Optional[datetime] = None) -> int:
        return sum(1 for s in self.shifts.values() if starting_from is None or s.start_time >= starting_from)

    def roster_counts_since(self, since: datetime) -> dict[int, int]:
        counts: dict[int, int] = {}
        for sid, users in self.roster.items():
            if self.shifts[sid].start_time < since:
                continue
            for uid in users:
                counts[uid] = counts.get(uid, 0) + 1
        return counts


class InMemoryGroups:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.groups: dict[int, Group] = {}
        self.members: dict[tuple[int, int], GroupMembership] = {}
        self._id = 100

    def add(self, group: Group) -> Group:
        self.groups[group.group_id] = group
        return group

    def get_by_id(self, group_id: int) -> Optional[Group]:
        group = self.groups.get(int(group_id))
        if not group:
            return None
        count = sum(1 for (_, gid) in self.members if gid == group.group_id)
        return replace(group, member_count=count)

    def get_by_name(self, name: str) -> Optional[Group]:
        return next((g for g in self.groups.values() if g.name == name), None)

    def list_all(self):
        return [self.get_by_id(gid) for gid in sorted(self.groups)]

    def list_for_user(self, user_id: int):
        return [self.get_by_id(gid) for (uid, gid) in self.members if uid == user_id]

    def create(self, *, name, description, category, created_by) -> int:
        self._id += 1
        self.add(Group(group_id=self._id, name=name, description=description, category=category, created_by=created_by))
        self.add_member(user_id=created_by, group_id=self._id, role=GroupRole.ADMIN)
        return self._id

    def get_membership(self, *, user_id: int, group_id: int) -> Optional[GroupMembership]:
        return self.members.get((int(user_id), int(group_id)))

    def add_member(self, *, user_id: int, group_id: int, role: GroupRole = GroupRole.MEMBER) -> bool:
        key = (int(user_id), int(group_id))
        if key in self.members:
            return False
        self.members[key] = GroupMembership(user_id=key[0], group_id=key[1], role=role)
        return True

    def remove_member(self, *, user_id: int, group_id: int) -> bool:
        return self.members.pop((int(user_id), int(group_id)), None) is not None

    def list_members(self, group_id: int):
        out = []
        for (uid, gid), m in self.members.items():
            if gid != group_id:
                continue
            user = self._users.get_by_id(uid)
            out.append(GroupMember(user_id=uid, name=user.name, email=user.email, role=m.role))
        return out

    def count_admins(self, group_id: int) -> int:
        return sum(1 for (_, gid), m in self.members.items() if gid == group_id and m.role == GroupRole.ADMIN)


class InMemoryHours:
    def __init__(self, users: InMemoryUsers):
        self._users = users
        self.entries: dict[int, HourLedgerEntry] = {}
        self._id = 0

    def add_entry(self, entry: NewHourEntry) -> int:
        self._id += 1
        self.entries[self._id] = HourLedgerEntry(
            entry_id=self._id,
            volunteer_id=entry.volunteer_id,
            hours=entry.hours,
            minutes=entry.minutes,
            description=entry.description,
            date=entry.date,
            group_id=entry.group_id,
            check_in_id=entry.check_in_id,
        )
        return self._id

    def seed(self, *, volunteer_id: int, hours: int, minutes: int, day: date, approved: bool = True, group_id=None):
        entry_id = self.add_entry(
            NewHourEntry(
                volunteer_id=volunteer_id, hours=hours, minutes=minutes, description="seed", date=day, group_id=group_id
            )
        )
        if approved:
            self.entries[entry_id] = replace(self.entries[entry_id], approved=True, approved_by=ADMIN_ID)
        return entry_id

    def get_by_id(self, entry_id: int) -> Optional[HourLedgerEntry]:
        return self.entries.get(int(entry_id))

    def list_for_volunteer(self, volunteer_id: int, *, limit: int):
        items = [e for e in self.entries.values() if e.volunteer_id == volunteer_id]
        items.sort(key=lambda e: (e.date, e.entry_id), reverse=True)
        return items[:limit]

    def list_pending(self, *, limit: int):
        return [e for e in self.entries.values() if not e.approved][:limit]

    def approve(self, entry_id: int, *, approved_by: int, approved_at: datetime) -> bool:
        entry = self.entries.get(int(entry_id))
        if not entry or entry.approved:
            return False
        self.entries[entry.entry_id] = replace(entry, approved=True, approved_by=approved_by, approved_at=approved_at)
        return True

    def delete_pending(self, entry_id: int) -> bool:
        entry = self.entries.get(int(entry_id))
        if not entry or entry.approved:
            return False
        del self.entries[entry.entry_id]
        return True

    def list_matching(self, *, volunteer_id=None, group_id=None, start=None, end=None):
        return [
            e
            for e in self.entries.values()
            if (volunteer_id is None or e.volunteer_id == volunteer_id)
            and (group_id is None or e.group_id == group_id)
            and (start is None or e.date >= start)
            and (end is None or e.date <= end)
        ]

    def group_report_rows(self, *, group_id: int, start: date, end: date):
        rows = []
        for e in self.list_matching(group_id=group_id, start=start, end=end):
            if not e.approved:
                continue
            user = self._users.get_by_id(e.volunteer_id)
            rows.append(
                GroupReportRow(
                    entry_id=e.entry_id,
                    volunteer_id=e.volunteer_id,
                    volunteer_name=user.name,
                    email=user.email,
                    date=e.date,
                    hours=e.hours,
                    minutes=e.minutes,
                    description=e.description,
                )
            )
        return rows


class InMemoryAttendance:
    """Mirrors the MySQL guarantees: one open record per pair, conditional close."""

    def __init__(self, hours: InMemoryHours):
        self._hours = hours
        self.records: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.concurrent_insert_on_create = False
        self._frozen: Optional[dict[int, AttendanceRecord]] = None

    def freeze_reads(self) -> None:
        """Serve get_by_id from a snapshot, like a request that read before a concurrent write."""

        self._frozen = dict(self.records)

    def get_by_id(self, check_in_id: int) -> Optional[AttendanceRecord]:
        source = self._frozen if self._frozen is not None else self.records
        return source.get(int(check_in_id))

    def get_open_for_pair(self, *, volunteer_id: int, shift_id: int) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self.records.values() if r.volunteer_id == volunteer_id and r.shift_id == shift_id and r.is_open),
            None,
        )

    def list_open_for_volunteer(self, volunteer_id: int):
        items = [r for r in self.records.values() if r.volunteer_id == volunteer_id and r.is_open]
        items.sort(key=lambda r: r.check_in_time, reverse=True)
        return items

    def get_recent_for_volunteer(self, volunteer_id: int, limit: int):
        items = [r for r in self.records.values() if r.volunteer_id == volunteer_id]
        items.sort(key=lambda r: r.check_in_time, reverse=True)
        return items[:limit]

    def count_open_for_shift(self, shift_id: int) -> int:
        return sum(1 for r in self.records.values() if r.shift_id == shift_id and r.is_open)

    def count_completed_for_volunteer(self, volunteer_id: int) -> int:
        return sum(1 for r in self.records.values() if r.volunteer_id == volunteer_id and not r.is_open)

    def _insert(self, *, volunteer_id, shift_id, check_in_time, notes) -> int:
        self._id += 1
        self.records[self._id] = AttendanceRecord(
            check_in_id=self._id,
            volunteer_id=volunteer_id,
            shift_id=shift_id,
            check_in_time=check_in_time,
            notes=notes,
        )
        return self._id

    def create_check_in(self, *, volunteer_id, shift_id, check_in_time, notes=None) -> Optional[int]:
        if self.concurrent_insert_on_create:
            # another request wins the unique key between our read and our insert
            self.concurrent_insert_on_create = False
            self._insert(volunteer_id=volunteer_id, shift_id=shift_id, check_in_time=check_in_time, notes=None)
        if self.get_open_for_pair(volunteer_id=volunteer_id, shift_id=shift_id):
            return None
        return self._insert(volunteer_id=volunteer_id, shift_id=shift_id, check_in_time=check_in_time, notes=notes)

    def close_with_ledger_entry(
        self, *, check_in_id, check_out_time, duration_minutes, notes, clock_skew, entry: NewHourEntry
    ) -> Optional[int]:
        record = self.records.get(int(check_in_id))
        if not record or not record.is_open:
            return None
        self.records[record.check_in_id] = replace(
            record,
            check_out_time=check_out_time,
            duration_minutes=duration_minutes,
            notes=notes,
            clock_skew=clock_skew,
        )
        return self._hours.add_entry(entry)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 14, 12, 30, 0)


@pytest.fixture
def users() -> InMemoryUsers:
    repo = InMemoryUsers()
    pw = generate_password_hash("secret123")
    repo.add(User(user_id=ADMIN_ID, name="Ada Admin", email="admin@example.org", password_hash=pw, role=Role.ADMIN))
    repo.add(User(user_id=VOLUNTEER_ID, name="Vera Volunteer", email="vera@example.org", password_hash=pw, role=Role.VOLUNTEER))
    repo.add(User(user_id=OTHER_VOLUNTEER_ID, name="Omar Other", email="omar@example.org", password_hash=pw, role=Role.VOLUNTEER))
    repo.add(User(user_id=PENDING_ID, name="Pat Pending", email="pat@example.org", password_hash=pw, role=Role.PENDING))
    return repo


@pytest.fixture
def shifts() -> InMemoryShifts:
    repo = InMemoryShifts()
    repo.add(
        Shift(
            shift_id=SHIFT_ID,
            title="Morning sorting",
            location="Warehouse A",
            start_time=datetime(2026, 3, 14, 9, 0, 0),
            end_time=datetime(2026, 3, 14, 12, 30, 0),
            capacity=3,
            group_id=GROUP_ID,
        )
    )
    repo.assign(SHIFT_ID, VOLUNTEER_ID)
    return repo


@pytest.fixture
def groups(users) -> InMemoryGroups:
    repo = InMemoryGroups(users)
    repo.add(Group(group_id=GROUP_ID, name="Food Bank Crew", category="Food", created_by=VOLUNTEER_ID))
    repo.add_member(user_id=VOLUNTEER_ID, group_id=GROUP_ID, role=GroupRole.ADMIN)
    repo.add_member(user_id=OTHER_VOLUNTEER_ID, group_id=GROUP_ID)
    return repo


@pytest.fixture
def hours(users) -> InMemoryHours:
    return InMemoryHours(users)


@pytest.fixture
def attendance(hours) -> InMemoryAttendance:
    return InMemoryAttendance(hours)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def volunteer() -> Actor:
    return Actor(user_id=VOLUNTEER_ID, role=Role.VOLUNTEER)


@pytest.fixture
def other_volunteer() -> Actor:
    return Actor(user_id=OTHER_VOLUNTEER_ID, role=Role.VOLUNTEER)


@pytest.fixture
def pending_user() -> Actor:
    return Actor(user_id=PENDING_ID, role=Role.PENDING)


@pytest.fixture
def container(users, shifts, groups, attendance, hours, notifier):
    return build_services(
        users_repo=users,
        shifts_repo=shifts,
        groups_repo=groups,
        attendance_repo=attendance,
        hours_repo=hours,
        notifier=notifier,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container, TESTING=True)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client, users):
    def _login(user_id: int):
        user = users.get_by_id(user_id)
        with client.session_transaction() as sess:
            sess["user_id"] = user.user_id
            sess["name"] = user.name
            sess["role"] = user.role.value
        return client

    return _login
