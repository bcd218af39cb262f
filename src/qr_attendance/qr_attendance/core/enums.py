from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Closed set of roles used for every permission check."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class InsertOutcome(str, Enum):
    """Result of an insert-if-absent against the record store."""

    INSERTED = "INSERTED"
    ALREADY_EXISTS = "ALREADY_EXISTS"


# Roles allowed to mint attendance sessions / to redeem them.
ISSUER_ROLES = frozenset({Role.TEACHER, Role.ADMIN})
PARTICIPANT_ROLES = frozenset({Role.STUDENT})
