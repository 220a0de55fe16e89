from __future__ import annotations

from flask import Flask, jsonify, session

from ..common.http import json_ok, login_required, login_user, payload
from ..common.serializers import session_user_json, user_json
from ..common.validators import require_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    auth = login_required(container.auth_service.load_actor)

    @app.route("/register", methods=["POST"], endpoint="register")
    def register_user():
        data = payload()
        user_id = container.user_service.register(
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
            phone=data.get("phone"),
        )
        return json_ok(
            user_json(container.user_service.get(user_id)),
            status=201,
            message="Registration received; an administrator will review your account",
        )

    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        data = payload()
        user = container.auth_service.authenticate(data.get("email"), data.get("password"))
        login_user(user)
        return json_ok(session_user_json(user))

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/me", methods=["GET"], endpoint="me")
    @auth
    def me(actor):
        return json_ok(user_json(container.user_service.get(actor.user_id)))

    @app.route("/admin/pending-volunteers", methods=["GET"], endpoint="admin_pending_volunteers")
    @auth
    def admin_pending_volunteers(actor):
        users = container.user_service.list_pending(actor=actor)
        return json_ok([user_json(u) for u in users])

    @app.route("/admin/users", methods=["GET"], endpoint="admin_users")
    @auth
    def admin_users(actor):
        users = container.user_service.list_users(actor=actor)
        return json_ok([user_json(u) for u in users])

    @app.route("/admin/volunteers/<int:user_id>/approve", methods=["POST"], endpoint="admin_approve_volunteer")
    @auth
    def admin_approve_volunteer(user_id: int, actor):
        container.user_service.approve_volunteer(actor=actor, user_id=user_id)
        return json_ok(user_json(container.user_service.get(user_id)), message="Volunteer approved")

    @app.route("/admin/volunteers/<int:user_id>/reject", methods=["POST"], endpoint="admin_reject_volunteer")
    @auth
    def admin_reject_volunteer(user_id: int, actor):
        container.user_service.reject_volunteer(actor=actor, user_id=user_id)
        return json_ok(message="Volunteer rejected")

    @app.route("/admin/users/<int:user_id>/active", methods=["POST"], endpoint="admin_set_user_active")
    @auth
    def admin_set_user_active(user_id: int, actor):
        raw = payload().get("isActive")
        is_active = raw if isinstance(raw, bool) else bool(require_int(raw, "isActive", minimum=0))
        container.user_service.set_active(actor=actor, user_id=user_id, is_active=is_active)
        return json_ok(user_json(container.user_service.get(user_id)))

    @app.route("/admin/users/<int:user_id>/role", methods=["POST"], endpoint="admin_set_user_role")
    @auth
    def admin_set_user_role(user_id: int, actor):
        user = container.user_service.set_role(actor=actor, user_id=user_id, role=payload().get("role"))
        return json_ok(user_json(user), message=f"User role updated to {user.role.value}")
