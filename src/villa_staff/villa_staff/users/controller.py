from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify, request, session

from ..common.http import admin_required, current_role, error_response, json_body, login_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import User

logger = logging.getLogger(__name__)


def user_json(user: User) -> dict:
    return {"id": user.id, "name": user.name, "role": user.role.value, "language": user.language}


def register(app: Flask, container: Container) -> None:
    def _parse_role(value) -> Optional[Role]:
        if not value:
            return None
        try:
            return Role(value)
        except ValueError:
            raise ValidationError(f"Unknown role: {value}")

    @app.route("/login", methods=["POST"], endpoint="login")
    def login():
        payload = json_body()
        s_user = container.roster_service.quick_login(str(payload.get("user_id") or ""))

        session.clear()
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value
        session["language"] = s_user.language
        logger.info("User %s logged in", s_user.user_id)
        return jsonify({"success": True, "user": {
            "id": s_user.user_id, "name": s_user.name, "role": s_user.role.value, "language": s_user.language,
        }})

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        user = container.roster_service.get_user(str(session["user_id"]))
        if not user:
            session.clear()
            return error_response("Please log in to continue", 401)
        return jsonify(user_json(user))

    @app.route("/users", methods=["GET"], endpoint="list_users")
    @login_required
    def list_users():
        role = _parse_role(request.args.get("role"))
        return jsonify([user_json(u) for u in container.roster_service.list_users(role)])

    @app.route("/users", methods=["POST"], endpoint="add_user")
    @admin_required
    def add_user():
        payload = json_body()
        user = container.roster_service.add_user(
            current_role=current_role(),
            name=str(payload.get("name") or ""),
            role=_parse_role(payload.get("role")) or Role.STAFF,
            language=str(payload.get("language") or ""),
        )
        return jsonify(user_json(user)), 201

    @app.route("/status", methods=["GET"], endpoint="status")
    def status():
        gateway = container.gateway
        return jsonify({"remote": gateway.is_remote_available, "remote_configured": gateway.is_remote_configured})
