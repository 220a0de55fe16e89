from __future__ import annotations

from datetime import date, datetime

import pytest

from volunteer_tracker.attendance.service import TimeTrackingService, merge_notes
from volunteer_tracker.core.enums import AttendanceState, ShiftStatus
from volunteer_tracker.core.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    NotAuthorized,
    NotFound,
    ValidationError,
)

SHIFT_ID = 10
GROUP_ID = 20
VOLUNTEER_ID = 2

NINE_AM = datetime(2026, 3, 14, 9, 0, 0)


@pytest.fixture
def svc(attendance, shifts, hours, notifier):
    return TimeTrackingService(attendance, shifts, hours, notifier=notifier)


def test_check_in_creates_open_record(svc, volunteer):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, notes="  early  ", now=NINE_AM)

    assert rec.volunteer_id == VOLUNTEER_ID
    assert rec.shift_id == SHIFT_ID
    assert rec.check_in_time == NINE_AM
    assert rec.check_out_time is None
    assert rec.duration_minutes is None
    assert rec.notes == "early"
    assert rec.state == AttendanceState.CHECKED_IN


def test_check_out_three_and_a_half_hours(svc, volunteer, hours):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    result = svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 12, 30, 0))

    assert result.record.duration_minutes == 210
    assert result.record.check_out_time == datetime(2026, 3, 14, 12, 30, 0)
    assert result.record.state == AttendanceState.CHECKED_OUT
    assert (result.duration.hours, result.duration.minutes, result.duration.total_minutes) == (3, 30, 210)

    entry = result.ledger_entry
    assert (entry.hours, entry.minutes) == (3, 30)
    assert entry.approved is False
    assert entry.volunteer_id == VOLUNTEER_ID
    assert entry.check_in_id == rec.check_in_id
    assert entry.group_id == GROUP_ID
    assert entry.date == date(2026, 3, 14)
    assert entry.description == "Shift: Morning sorting at Warehouse A"
    assert len(hours.entries) == 1


def test_duration_floors_partial_minutes(svc, volunteer):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    result = svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 9, 45, 59))

    assert result.record.duration_minutes == 45
    assert (result.ledger_entry.hours, result.ledger_entry.minutes) == (0, 45)


def test_second_check_in_reports_existing_record(svc, volunteer):
    first = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    with pytest.raises(AlreadyCheckedIn) as exc:
        svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=datetime(2026, 3, 14, 9, 5, 0))

    assert exc.value.check_in_id == first.check_in_id
    assert exc.value.status_code == 409


def test_concurrent_check_in_lost_race_reports_winner(svc, volunteer, attendance):
    attendance.concurrent_insert_on_create = True

    with pytest.raises(AlreadyCheckedIn) as exc:
        svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    open_records = attendance.list_open_for_volunteer(VOLUNTEER_ID)
    assert len(open_records) == 1
    assert exc.value.check_in_id == open_records[0].check_in_id


def test_at_most_one_open_record_per_pair(svc, volunteer, attendance):
    svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    for minute in (1, 2, 3):
        with pytest.raises(AlreadyCheckedIn):
            svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=datetime(2026, 3, 14, 9, minute, 0))

    assert attendance.count_open_for_shift(SHIFT_ID) == 1


def test_can_check_in_again_after_check_out(svc, volunteer):
    first = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    svc.check_out(actor=volunteer, check_in_id=first.check_in_id, now=datetime(2026, 3, 14, 10, 0, 0))

    second = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=datetime(2026, 3, 14, 11, 0, 0))

    assert second.check_in_id != first.check_in_id
    assert second.is_open


def test_open_check_ins_on_different_shifts_are_allowed(svc, volunteer, shifts):
    other = shifts.create(
        title="Afternoon sorting",
        location="Warehouse B",
        start_time=datetime(2026, 3, 14, 8, 0, 0),
        end_time=datetime(2026, 3, 14, 17, 0, 0),
        capacity=2,
    )
    shifts.assign(other, VOLUNTEER_ID)

    svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    svc.check_in(actor=volunteer, shift_id=other, now=datetime(2026, 3, 14, 9, 10, 0))

    active = svc.active_check_ins(volunteer_id=VOLUNTEER_ID)
    assert [r.shift_id for r in active] == [other, SHIFT_ID]
    assert svc.current_check_in(volunteer_id=VOLUNTEER_ID).shift_id == other


def test_check_in_requires_roster_membership(svc, other_volunteer):
    with pytest.raises(NotAuthorized):
        svc.check_in(actor=other_volunteer, shift_id=SHIFT_ID, now=NINE_AM)


def test_check_in_unknown_shift(svc, volunteer):
    with pytest.raises(NotFound):
        svc.check_in(actor=volunteer, shift_id=999, now=NINE_AM)


@pytest.mark.parametrize("shift_id", [None, "", "abc"])
def test_check_in_requires_shift_id(svc, volunteer, shift_id):
    with pytest.raises(ValidationError):
        svc.check_in(actor=volunteer, shift_id=shift_id, now=NINE_AM)


def test_second_check_out_fails_and_writes_one_entry(svc, volunteer, hours):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 11, 0, 0))

    with pytest.raises(AlreadyCheckedOut):
        svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 11, 5, 0))

    assert len(hours.entries) == 1


def test_racing_check_outs_only_one_wins(svc, volunteer, admin, attendance, hours):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    # both requests read the record while it was still open
    attendance.freeze_reads()

    svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 11, 0, 0))
    with pytest.raises(AlreadyCheckedOut):
        svc.check_out(actor=admin, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 11, 0, 1))

    ledger = [e for e in hours.entries.values() if e.check_in_id == rec.check_in_id]
    assert len(ledger) == 1
    assert attendance.records[rec.check_in_id].duration_minutes == 120


def test_check_out_unknown_record(svc, volunteer):
    with pytest.raises(NotFound):
        svc.check_out(actor=volunteer, check_in_id=12345, now=NINE_AM)


def test_check_out_of_someone_elses_record_is_refused(svc, volunteer, other_volunteer, hours):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    with pytest.raises(NotAuthorized):
        svc.check_out(actor=other_volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 10, 0, 0))

    assert hours.entries == {}


def test_admin_check_out_credits_the_volunteer(svc, volunteer, admin):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    result = svc.check_out(actor=admin, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 10, 0, 0))

    assert result.ledger_entry.volunteer_id == VOLUNTEER_ID


def test_clock_skew_clamps_duration_to_zero(svc, volunteer, caplog):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    with caplog.at_level("WARNING"):
        result = svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 8, 55, 0))

    assert result.record.duration_minutes == 0
    assert result.record.clock_skew is True
    assert result.record.check_out_time == NINE_AM
    assert (result.ledger_entry.hours, result.ledger_entry.minutes) == (0, 0)
    assert "clock skew" in caplog.text


def test_sub_second_check_out_in_same_second_is_not_skew(svc, volunteer):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=datetime(2026, 3, 14, 9, 0, 0, 600000))
    assert rec.check_in_time == NINE_AM

    result = svc.check_out(
        actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 9, 0, 0, 900000)
    )

    assert result.record.clock_skew is False
    assert result.record.check_out_time == NINE_AM
    assert result.record.duration_minutes == 0


def test_check_out_notes_are_appended(svc, volunteer):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, notes="Arrived early", now=NINE_AM)

    result = svc.check_out(
        actor=volunteer, check_in_id=rec.check_in_id, notes="Left via side door", now=datetime(2026, 3, 14, 10, 0, 0)
    )

    assert result.record.notes == "Arrived early\n\nCheck-out notes: Left via side door"


def test_merge_notes_without_existing_or_new():
    assert merge_notes(None, "done") == "Check-out notes: done"
    assert merge_notes("kept", None) == "kept"
    assert merge_notes("kept", "   ") == "kept"


def test_shift_completes_when_ended_and_nobody_open(svc, volunteer, shifts):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 12, 45, 0))

    assert shifts.get_by_id(SHIFT_ID).status == ShiftStatus.COMPLETED


def test_shift_stays_open_while_others_checked_in(svc, volunteer, other_volunteer, shifts):
    shifts.assign(SHIFT_ID, other_volunteer.user_id)
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    svc.check_in(actor=other_volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 12, 45, 0))

    assert shifts.get_by_id(SHIFT_ID).status == ShiftStatus.OPEN


def test_shift_not_completed_before_its_end(svc, volunteer, shifts):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 11, 0, 0))

    assert shifts.get_by_id(SHIFT_ID).status == ShiftStatus.OPEN


def test_check_out_notifies_volunteer(svc, volunteer, admin, notifier):
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    svc.check_out(actor=admin, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 10, 15, 0))

    user_id, event, payload = notifier.events[-1]
    assert (user_id, event) == (VOLUNTEER_ID, "checked_out")
    assert (payload["hours"], payload["minutes"]) == (1, 15)


def test_failing_notifier_does_not_fail_check_out(attendance, shifts, hours, volunteer):
    class Broken:
        def notify(self, *, user_id, event, payload):
            raise RuntimeError("smtp down")

    svc = TimeTrackingService(attendance, shifts, hours, notifier=Broken())
    rec = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)

    result = svc.check_out(actor=volunteer, check_in_id=rec.check_in_id, now=datetime(2026, 3, 14, 10, 0, 0))

    assert result.record.duration_minutes == 60
    assert len(hours.entries) == 1


def test_history_newest_first(svc, volunteer):
    first = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=NINE_AM)
    svc.check_out(actor=volunteer, check_in_id=first.check_in_id, now=datetime(2026, 3, 14, 10, 0, 0))
    second = svc.check_in(actor=volunteer, shift_id=SHIFT_ID, now=datetime(2026, 3, 14, 11, 0, 0))

    history = svc.history(volunteer_id=VOLUNTEER_ID, limit=10)

    assert [r.check_in_id for r in history] == [second.check_in_id, first.check_in_id]
    assert svc.history(volunteer_id=VOLUNTEER_ID, limit=1)[0].check_in_id == second.check_in_id
