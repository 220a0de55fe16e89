from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_ok, login_required, payload
from ..common.serializers import attendance_json, check_out_json
from ..common.validators import optional_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.auth_service.load_actor)

    @app.route("/check-in", methods=["POST"], endpoint="check_in")
    @auth
    def check_in(actor):
        data = payload()
        record = container.time_tracking_service.check_in(
            actor=actor,
            shift_id=data.get("shiftId"),
            notes=data.get("notes"),
        )
        return jsonify(attendance_json(record)), 201

    @app.route("/check-out", methods=["POST"], endpoint="check_out")
    @auth
    def check_out(actor):
        data = payload()
        result = container.time_tracking_service.check_out(
            actor=actor,
            check_in_id=data.get("checkInId"),
            notes=data.get("notes"),
        )
        return jsonify({"success": True, "message": "Check-out successful", **check_out_json(result)}), 200

    @app.route("/check-in/status", methods=["GET"], endpoint="check_in_status")
    @auth
    def check_in_status(actor):
        current = container.time_tracking_service.current_check_in(volunteer_id=actor.user_id)
        active = container.time_tracking_service.active_check_ins(volunteer_id=actor.user_id)
        return jsonify(
            {
                "success": True,
                "data": attendance_json(current) if current else None,
                "active": [attendance_json(r) for r in active],
            }
        )

    @app.route("/check-in/history", methods=["GET"], endpoint="check_in_history")
    @auth
    def check_in_history(actor):
        limit = optional_int(request.args.get("limit"), "limit", minimum=1) or DEFAULT_HISTORY_LIMIT
        records = container.time_tracking_service.history(volunteer_id=actor.user_id, limit=limit)
        return json_ok([attendance_json(r) for r in records])
