from __future__ import annotations

from flask import Flask, g, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..container import Container
from ..core.enums import ISSUER_ROLES, PARTICIPANT_ROLES
from ..core.failures import FailureKind
from ..core.result import Err, fail
from ..identity.decorators import auth_required, failure_response, role_required


def _optional_date(name: str):
    value = request.args.get(name)
    return parse_iso_date(value) if value else None


def register(app: Flask, container: Container) -> None:
    login_required = auth_required(container.identity_verifier)

    @app.route("/api/attendance/scan", methods=["POST"], endpoint="scan_qr")
    @login_required
    @role_required(*PARTICIPANT_ROLES)
    def scan_qr():
        data = request.get_json(silent=True) or {}
        submission = data.get("qrData") or data.get("token")
        result = container.redemption_engine.redeem(g.principal, submission)
        if isinstance(result, Err):
            return failure_response(result.failure)

        record = result.value
        return jsonify(
            {
                "success": True,
                "message": "Attendance marked successfully",
                "attendance": {
                    "sessionId": record.session_id,
                    "subject": record.activity_label,
                    "date": record.recorded_at.isoformat(),
                    "status": record.status.value,
                },
            }
        )

    @app.route("/api/attendance/student", methods=["GET"], endpoint="student_attendance")
    @login_required
    @role_required(*PARTICIPANT_ROLES)
    def student_attendance():
        try:
            start, end = _optional_date("startDate"), _optional_date("endDate")
        except ValueError:
            return failure_response(fail(FailureKind.INVALID_INPUT, "Dates must use YYYY-MM-DD").failure)

        result = container.report_service.student_summary(
            g.principal, start=start, end=end, activity_label=request.args.get("subject")
        )
        if isinstance(result, Err):
            return failure_response(result.failure)

        summary = result.value
        return jsonify(
            {
                "success": True,
                "attendance": [r.to_dict() for r in summary.records],
                "statistics": summary.statistics.to_dict(),
            }
        )

    @app.route("/api/attendance/teacher/<path:subject>", methods=["GET"], endpoint="teacher_attendance")
    @login_required
    @role_required(*ISSUER_ROLES)
    def teacher_attendance(subject: str):
        try:
            on_date = _optional_date("date")
        except ValueError:
            return failure_response(fail(FailureKind.INVALID_INPUT, "Dates must use YYYY-MM-DD").failure)

        result = container.report_service.activity_attendance(g.principal, subject, on_date=on_date)
        if isinstance(result, Err):
            return failure_response(result.failure)

        report = result.value
        return jsonify(
            {
                "success": True,
                "subject": report.activity_label,
                "totalRecords": len(report.records),
                "attendanceByDate": {day: [r.to_dict() for r in rows] for day, rows in report.by_date.items()},
                "attendance": [r.to_dict() for r in report.records],
            }
        )
