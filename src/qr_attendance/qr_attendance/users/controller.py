from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.validators import require_bool
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..core.failures import FailureKind
from ..core.result import Err, fail
from ..identity.decorators import auth_required, failure_response, role_required
from .service import LoginResult


def _login_body(result: LoginResult, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "token": result.credential.token,
        "expiresAt": result.credential.expires_at.isoformat(),
        "user": result.user.public_view(),
    }


def register(app: Flask, container: Container) -> None:
    login_required = auth_required(container.identity_verifier)

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = request.get_json(silent=True) or {}
        result = container.user_service.register(
            full_name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=data.get("role"),
            roll_number=data.get("rollNumber"),
        )
        if isinstance(result, Err):
            return failure_response(result.failure)
        return jsonify(_login_body(result.value, "Registration successful")), 201

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = request.get_json(silent=True) or {}
        result = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        if isinstance(result, Err):
            return failure_response(result.failure)
        return jsonify(_login_body(result.value, "Login successful"))

    @app.route("/api/auth/check-email", methods=["POST"], endpoint="auth_check_email")
    def auth_check_email():
        data = request.get_json(silent=True) or {}
        result = container.user_service.check_email(data.get("email", ""))
        if isinstance(result, Err):
            return failure_response(result.failure)
        return jsonify({"success": True, "exists": result.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    @login_required
    def auth_logout():
        # credentials are stateless; the client drops its copy
        response = jsonify({"success": True, "message": "Logged out successfully"})
        response.delete_cookie("token")
        return response

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me():
        return jsonify({"success": True, "user": g.principal.public_view()})

    @app.route("/api/auth/change-password", methods=["POST"], endpoint="auth_change_password")
    @login_required
    def auth_change_password():
        data = request.get_json(silent=True) or {}
        result = container.user_service.change_password(
            g.principal,
            current_password=data.get("currentPassword", ""),
            new_password=data.get("newPassword", ""),
        )
        if isinstance(result, Err):
            return failure_response(result.failure)
        return jsonify(
            {
                "success": True,
                "message": "Password changed. Other sessions have been signed out.",
                "token": result.value.token,
                "expiresAt": result.value.expires_at.isoformat(),
            }
        )

    @app.route("/api/admin/users/<int:user_id>/active", methods=["POST"], endpoint="admin_set_active")
    @login_required
    @role_required(Role.ADMIN)
    def admin_set_active(user_id: int):
        data = request.get_json(silent=True) or {}
        try:
            is_active = require_bool(data.get("active"), "active")
        except ValidationError as e:
            return failure_response(fail(FailureKind.INVALID_INPUT, str(e)).failure)

        result = container.user_service.set_active(g.principal, user_id, is_active=is_active)
        if isinstance(result, Err):
            return failure_response(result.failure)
        return jsonify({"success": True, "user": result.value.public_view()})
