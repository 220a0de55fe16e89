from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import json_ok, login_required, payload
from ..common.serializers import shift_json
from ..common.validators import optional_int
from ..container import Container
from ..core.exceptions import ValidationError


def _datetime_field(data: dict, key: str):
    raw = str(data.get(key) or "").strip()
    if not raw:
        raise ValidationError(f"{key} is required")
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.auth_service.load_actor)

    @app.route("/shifts", methods=["GET"], endpoint="shifts")
    @auth
    def shifts(actor):
        return json_ok([shift_json(s) for s in container.shift_service.list_upcoming()])

    @app.route("/shifts/mine", methods=["GET"], endpoint="my_shifts")
    @auth
    def my_shifts(actor):
        return json_ok([shift_json(s) for s in container.shift_service.list_mine(actor=actor)])

    @app.route("/shifts/<int:shift_id>", methods=["GET"], endpoint="shift_detail")
    @auth
    def shift_detail(shift_id: int, actor):
        return json_ok(shift_json(container.shift_service.get(shift_id)))

    @app.route("/shifts", methods=["POST"], endpoint="create_shift")
    @auth
    def create_shift(actor):
        data = payload()
        shift_id = container.shift_service.create_shift(
            actor=actor,
            title=data.get("title"),
            location=data.get("location"),
            start_time=_datetime_field(data, "startTime"),
            end_time=_datetime_field(data, "endTime"),
            capacity=data.get("capacity"),
            description=data.get("description"),
            group_id=optional_int(data.get("groupId"), "groupId", minimum=1),
        )
        return json_ok(shift_json(container.shift_service.get(shift_id)), status=201)

    @app.route("/shifts/<int:shift_id>/signup", methods=["POST"], endpoint="shift_signup")
    @auth
    def shift_signup(shift_id: int, actor):
        shift = container.shift_service.sign_up(actor=actor, shift_id=shift_id)
        return json_ok(shift_json(shift), message="Signed up for shift")

    @app.route("/shifts/<int:shift_id>/cancel", methods=["POST"], endpoint="shift_cancel_signup")
    @auth
    def shift_cancel_signup(shift_id: int, actor):
        container.shift_service.cancel_sign_up(actor=actor, shift_id=shift_id)
        return json_ok(shift_json(container.shift_service.get(shift_id)), message="Sign-up cancelled")

    @app.route("/admin/shifts/<int:shift_id>/cancel", methods=["POST"], endpoint="admin_cancel_shift")
    @auth
    def admin_cancel_shift(shift_id: int, actor):
        container.shift_service.cancel_shift(actor=actor, shift_id=shift_id)
        return json_ok(shift_json(container.shift_service.get(shift_id)), message="Shift cancelled")
