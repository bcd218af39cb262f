from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..container import Container
from ..core.enums import ISSUER_ROLES
from ..core.result import Err
from ..identity.decorators import auth_required, failure_response, role_required
from .qr import render_qr_data_url


def register(app: Flask, container: Container) -> None:
    login_required = auth_required(container.identity_verifier)

    @app.route("/api/attendance/generate-qr", methods=["POST"], endpoint="generate_qr")
    @login_required
    @role_required(*ISSUER_ROLES)
    def generate_qr():
        data = request.get_json(silent=True) or {}
        result = container.session_issuer.issue(g.principal, data.get("subject", ""), data.get("duration"))
        if isinstance(result, Err):
            return failure_response(result.failure)

        issued = result.value
        return jsonify(
            {
                "success": True,
                "message": "QR code generated successfully",
                "qrCode": render_qr_data_url(issued.credential),
                "qrData": issued.credential,
                "sessionId": issued.session_id,
                "subject": issued.activity_label,
                "expiresIn": issued.duration_minutes,
                "expiresAt": issued.expires_at.isoformat(),
            }
        )
