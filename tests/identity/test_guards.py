from qr_attendance.core.enums import ISSUER_ROLES, Role
from qr_attendance.core.failures import FailureKind, ResponseCode
from qr_attendance.core.result import Err, Ok
from qr_attendance.identity.guards import require_role


def test_allowed_role_passes_principal_through(teacher):
    result = require_role(teacher, ISSUER_ROLES)

    assert isinstance(result, Ok)
    assert result.value is teacher


def test_wrong_role_is_forbidden(student):
    result = require_role(student, {Role.TEACHER, Role.ADMIN})

    assert isinstance(result, Err)
    assert result.kind == FailureKind.ROLE_PERMISSION_DENIED
    assert result.failure.response_code == ResponseCode.FORBIDDEN
    assert result.failure.details["user_role"] == "student"
    assert result.failure.details["required_roles"] == ["admin", "teacher"]


def test_missing_principal_is_unauthenticated():
    assert require_role(None, {Role.STUDENT}).kind == FailureKind.NO_TOKEN
