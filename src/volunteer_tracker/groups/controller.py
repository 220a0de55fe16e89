from __future__ import annotations

from flask import Flask

from ..common.http import json_ok, login_required, payload
from ..common.serializers import group_json, member_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.auth_service.load_actor)

    @app.route("/groups", methods=["GET"], endpoint="groups")
    @auth
    def groups(actor):
        return json_ok([group_json(g) for g in container.group_service.list_all()])

    @app.route("/groups", methods=["POST"], endpoint="create_group")
    @auth
    def create_group(actor):
        data = payload()
        group_id = container.group_service.create_group(
            actor=actor,
            name=data.get("name"),
            description=data.get("description"),
            category=data.get("category"),
        )
        return json_ok(group_json(container.group_service.get(group_id)), status=201)

    @app.route("/groups/mine", methods=["GET"], endpoint="my_groups")
    @auth
    def my_groups(actor):
        return json_ok([group_json(g) for g in container.group_service.list_mine(actor=actor)])

    @app.route("/groups/<int:group_id>", methods=["GET"], endpoint="group_detail")
    @auth
    def group_detail(group_id: int, actor):
        group = container.group_service.get(group_id)
        members = container.group_service.list_members(group_id=group.group_id)
        return json_ok({**group_json(group), "members": [member_json(m) for m in members]})

    @app.route("/groups/<int:group_id>/join", methods=["POST"], endpoint="join_group")
    @auth
    def join_group(group_id: int, actor):
        container.group_service.join(actor=actor, group_id=group_id)
        return json_ok(message="Joined group")

    @app.route("/groups/<int:group_id>/leave", methods=["POST"], endpoint="leave_group")
    @auth
    def leave_group(group_id: int, actor):
        container.group_service.leave(actor=actor, group_id=group_id)
        return json_ok(message="Left group")

    @app.route("/groups/<int:group_id>/members/<int:user_id>", methods=["DELETE"], endpoint="remove_group_member")
    @auth
    def remove_group_member(group_id: int, user_id: int, actor):
        container.group_service.remove_member(actor=actor, group_id=group_id, user_id=user_id)
        return json_ok(message="Member removed")
