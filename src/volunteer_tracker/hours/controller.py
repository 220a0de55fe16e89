from __future__ import annotations

from datetime import date

from flask import Flask, request

from ..common.http import json_ok, login_required, payload, query_date, query_int
from ..common.serializers import (
    admin_stats_json,
    ledger_json,
    report_row_json,
    stats_json,
    summary_json,
    top_volunteer_json,
)
from ..common.validators import optional_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_TOP_VOLUNTEERS


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.auth_service.load_actor)

    def _report_range():
        today = date.today()
        start = query_date("startDate") or today.replace(day=1)
        end = query_date("endDate") or today
        return start, end

    def _write_report_csv(*, csv_text: str, filename: str):
        return app.response_class(
            csv_text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/log-hours", methods=["POST"], endpoint="log_hours")
    @auth
    def log_hours(actor):
        data = payload()
        entry = container.hour_ledger_service.log_hours(
            actor=actor,
            hours=data.get("hours"),
            minutes=data.get("minutes"),
            description=data.get("description"),
            date=data.get("date"),
            group_id=data.get("groupId"),
        )
        return json_ok(ledger_json(entry), status=201, message="Hours logged successfully")

    @app.route("/hours", methods=["GET"], endpoint="my_hours")
    @auth
    def my_hours(actor):
        limit = optional_int(request.args.get("limit"), "limit", minimum=1) or DEFAULT_HISTORY_LIMIT
        entries = container.hour_ledger_service.my_entries(actor=actor, limit=limit)
        return json_ok([ledger_json(e) for e in entries])

    @app.route("/hours/summary", methods=["GET"], endpoint="hours_summary")
    @auth
    def hours_summary(actor):
        summary = container.hours_report_service.my_summary(
            actor=actor,
            group_id=query_int("groupId"),
            start=query_date("start"),
            end=query_date("end"),
        )
        return json_ok(summary_json(summary))

    @app.route("/volunteer/stats", methods=["GET"], endpoint="volunteer_stats")
    @auth
    def volunteer_stats(actor):
        return json_ok(stats_json(container.hours_report_service.volunteer_stats(actor=actor)))

    @app.route("/admin/hours/pending", methods=["GET"], endpoint="admin_pending_hours")
    @auth
    def admin_pending_hours(actor):
        entries = container.hour_ledger_service.pending(actor=actor)
        return json_ok([ledger_json(e) for e in entries])

    @app.route("/admin/hours/<int:entry_id>/approve", methods=["POST"], endpoint="admin_approve_hours")
    @auth
    def admin_approve_hours(entry_id: int, actor):
        entry = container.hour_ledger_service.approve(actor=actor, entry_id=entry_id)
        return json_ok(ledger_json(entry), message="Hours approved")

    @app.route("/admin/hours/<int:entry_id>/reject", methods=["POST"], endpoint="admin_reject_hours")
    @auth
    def admin_reject_hours(entry_id: int, actor):
        container.hour_ledger_service.reject(actor=actor, entry_id=entry_id)
        return json_ok(message="Hours rejected")

    @app.route("/admin/reports/hours", methods=["GET"], endpoint="admin_hours_report")
    @auth
    def admin_hours_report(actor):
        summary = container.hours_report_service.admin_summary(
            actor=actor,
            volunteer_id=query_int("volunteerId"),
            group_id=query_int("groupId"),
            start=query_date("start"),
            end=query_date("end"),
        )
        return json_ok(summary_json(summary))

    @app.route("/admin/stats", methods=["GET"], endpoint="admin_stats")
    @auth
    def admin_stats(actor):
        return json_ok(admin_stats_json(container.hours_report_service.admin_stats(actor=actor)))

    @app.route("/admin/top-volunteers", methods=["GET"], endpoint="admin_top_volunteers")
    @auth
    def admin_top_volunteers(actor):
        limit = optional_int(request.args.get("limit"), "limit", minimum=1) or DEFAULT_TOP_VOLUNTEERS
        ranked = container.hours_report_service.top_volunteers(actor=actor, limit=limit)
        return json_ok([top_volunteer_json(v) for v in ranked])

    @app.route("/groups/<int:group_id>/hours-report", methods=["GET"], endpoint="group_hours_report")
    @auth
    def group_hours_report(group_id: int, actor):
        start, end = _report_range()
        rows = container.hours_report_service.group_hours_report(actor=actor, group_id=group_id, start=start, end=end)
        return json_ok(
            [report_row_json(r) for r in rows],
            startDate=start.isoformat(),
            endDate=end.isoformat(),
        )

    @app.route("/groups/<int:group_id>/hours-report.csv", methods=["GET"], endpoint="group_hours_report_csv")
    @auth
    def group_hours_report_csv(group_id: int, actor):
        start, end = _report_range()
        rows = container.hours_report_service.group_hours_report(actor=actor, group_id=group_id, start=start, end=end)
        filename = f"group_{group_id}_hours_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_report_csv(csv_text=container.hours_report_service.to_csv(rows), filename=filename)
