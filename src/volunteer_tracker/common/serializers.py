"""JSON shapes sent over the wire (camelCase keys)."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .datetime_utils import fmt_dt


def _enum(value) -> Optional[str]:
    return value.value if value is not None else None


def user_json(u) -> Dict[str, Any]:
    return {
        "id": u.user_id,
        "name": u.name,
        "email": u.email,
        "phone": u.phone,
        "role": _enum(u.role),
        "isActive": u.is_active,
        "createdAt": fmt_dt(u.created_at),
    }


def session_user_json(u) -> Dict[str, Any]:
    return {"id": u.user_id, "name": u.name, "email": u.email, "role": _enum(u.role)}


def shift_json(s) -> Dict[str, Any]:
    return {
        "id": s.shift_id,
        "title": s.title,
        "description": s.description,
        "location": s.location,
        "startTime": fmt_dt(s.start_time),
        "endTime": fmt_dt(s.end_time),
        "capacity": s.capacity,
        "volunteerCount": s.volunteer_count,
        "status": _enum(s.status),
        "groupId": s.group_id,
    }


def group_json(g) -> Dict[str, Any]:
    return {
        "id": g.group_id,
        "name": g.name,
        "description": g.description,
        "category": g.category,
        "createdBy": g.created_by,
        "memberCount": g.member_count,
    }


def member_json(m) -> Dict[str, Any]:
    return {
        "userId": m.user_id,
        "name": m.name,
        "email": m.email,
        "role": _enum(m.role),
        "joinedAt": fmt_dt(m.joined_at),
    }


def attendance_json(r) -> Dict[str, Any]:
    return {
        "id": r.check_in_id,
        "checkInId": r.check_in_id,
        "volunteerId": r.volunteer_id,
        "shiftId": r.shift_id,
        "checkInTime": fmt_dt(r.check_in_time),
        "checkOutTime": fmt_dt(r.check_out_time),
        "durationMinutes": r.duration_minutes,
        "notes": r.notes,
        "clockSkew": r.clock_skew,
        "state": _enum(r.state),
    }


def ledger_json(e) -> Dict[str, Any]:
    return {
        "id": e.entry_id,
        "volunteerId": e.volunteer_id,
        "groupId": e.group_id,
        "checkInId": e.check_in_id,
        "hours": e.hours,
        "minutes": e.minutes,
        "description": e.description,
        "date": e.date.isoformat() if e.date else None,
        "approved": e.approved,
        "approvedBy": e.approved_by,
        "approvedAt": fmt_dt(e.approved_at),
        "createdAt": fmt_dt(e.created_at),
    }


def duration_json(d) -> Dict[str, Any]:
    return {"hours": d.hours, "minutes": d.minutes, "totalMinutes": d.total_minutes}


def check_out_json(result) -> Dict[str, Any]:
    return {
        "attendanceRecord": attendance_json(result.record),
        "ledgerEntry": ledger_json(result.ledger_entry),
        "duration": duration_json(result.duration),
    }


def total_json(t) -> Dict[str, Any]:
    return {"hours": t.hours, "minutes": t.minutes, "totalHours": t.decimal_hours}


def summary_json(s) -> Dict[str, Any]:
    return {
        "approved": total_json(s.approved),
        "pending": total_json(s.pending),
        "approvedEntries": s.approved_entries,
        "pendingEntries": s.pending_entries,
    }


def stats_json(st) -> Dict[str, Any]:
    return {
        **summary_json(st.summary),
        "completedCheckIns": st.completed_check_ins,
        "upcomingShifts": st.upcoming_shifts,
    }


def report_row_json(r) -> Dict[str, Any]:
    return {
        "entryId": r.entry_id,
        "volunteerId": r.volunteer_id,
        "volunteerName": r.volunteer_name,
        "email": r.email,
        "date": r.date.isoformat(),
        "hours": r.hours,
        "minutes": r.minutes,
        "description": r.description,
    }


def admin_stats_json(st) -> Dict[str, Any]:
    return {
        "totalVolunteers": st.total_volunteers,
        "pendingVolunteers": st.pending_volunteers,
        "totalShifts": st.total_shifts,
        "upcomingShifts": st.upcoming_shifts,
        "totalHours": total_json(st.approved),
        "pendingApprovals": st.pending_approvals,
    }


def top_volunteer_json(v) -> Dict[str, Any]:
    return {
        "id": v.volunteer_id,
        "name": v.name,
        "email": v.email,
        "totalHours": v.total.decimal_hours,
        "hours": v.total.hours,
        "minutes": v.total.minutes,
        "recentShifts": v.recent_shifts,
    }
