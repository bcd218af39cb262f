from __future__ import annotations

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence, Union

import jwt

from ..common.datetime_utils import Clock, utc_now
from ..common.token_codec import TokenCodec
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import ISSUER_ROLES, PARTICIPANT_ROLES, AttendanceStatus, InsertOutcome
from ..core.exceptions import StoreUnavailableError
from ..core.failures import FailureKind
from ..core.result import Err, Ok, Result, fail
from ..identity.guards import require_role
from ..sessions.model import AttendanceSession, parse_session_claims
from ..users.model import User
from .model import RedemptionRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("qr_attendance.audit")

Submission = Union[str, Mapping[str, Any]]


def extract_session_token(submission: Optional[Submission]) -> Optional[str]:
    """Accept the compact credential, or a JSON envelope carrying it under ``token``."""
    if submission is None:
        return None

    if isinstance(submission, Mapping):
        token = submission.get("token")
        return token.strip() if isinstance(token, str) and token.strip() else None

    if not isinstance(submission, str):
        return None

    text = submission.strip()
    if text.startswith("{"):
        try:
            envelope = json.loads(text)
        except ValueError:
            return None
        return extract_session_token(envelope) if isinstance(envelope, Mapping) else None
    return text or None


class RedemptionEngine:
    """Use case: a student redeems an attendance session credential.

    Per (session_id, student_id) the only transition is
    no-record -> recorded, and it happens at most once; that guarantee comes
    from the store's atomic insert-if-absent, not from any lock here.
    """

    def __init__(self, records: AttendanceRepository, codec: TokenCodec, *, clock: Clock = utc_now):
        self._records = records
        self._codec = codec
        self._clock = clock

    def redeem(self, principal: Optional[User], session_credential: Optional[Submission]) -> Result[RedemptionRecord]:
        result, session = self._redeem(principal, session_credential)
        self._audit(principal, session, result)
        return result

    def _redeem(self, principal, session_credential):
        allowed = require_role(principal, PARTICIPANT_ROLES, action="redeem_session")
        if isinstance(allowed, Err):
            return allowed, None

        session = self._parse(session_credential)
        if session is None:
            return fail(FailureKind.INVALID_SESSION_FORMAT), None

        now = self._clock()
        if now > session.expires_at:
            return (
                fail(
                    FailureKind.SESSION_EXPIRED,
                    session_id=session.session_id,
                    expired_at=session.expires_at.isoformat(),
                ),
                session,
            )

        record = RedemptionRecord(
            session_id=session.session_id,
            student_id=principal.user_id,
            student_name=principal.full_name,
            roll_number=principal.roll_number,
            activity_label=session.activity_label,
            marked_by=session.issuer_id,
            recorded_at=now,
            status=AttendanceStatus.PRESENT,
        )

        try:
            outcome = self._records.insert_if_absent(record)
        except StoreUnavailableError:
            logger.exception(
                "Redemption insert failed | session=%s | user=%s", session.session_id, principal.user_id
            )
            return fail(FailureKind.STORE_UNAVAILABLE, session_id=session.session_id), session

        if outcome == InsertOutcome.ALREADY_EXISTS:
            return fail(FailureKind.DUPLICATE_REDEMPTION, session_id=session.session_id), session
        return Ok(record), session

    def _parse(self, submission: Optional[Submission]) -> Optional[AttendanceSession]:
        token = extract_session_token(submission)
        if token is None:
            return None
        try:
            return parse_session_claims(self._codec.decode(token))
        except (jwt.InvalidTokenError, ValueError):
            return None

    @staticmethod
    def _audit(principal: Optional[User], session: Optional[AttendanceSession], result: Result[RedemptionRecord]) -> None:
        outcome = "REDEEMED" if isinstance(result, Ok) else result.kind.value
        audit_logger.info(
            "Redemption attempt: %s | session=%s | user=%s | activity=%s",
            outcome,
            session.session_id if session else "-",
            principal.user_id if principal else "unknown",
            session.activity_label if session else "-",
        )


@dataclass(frozen=True)
class AttendanceStatistics:
    total: int
    present: int
    absent: int
    percentage: float

    def to_dict(self) -> dict:
        return {
            "totalClasses": self.total,
            "present": self.present,
            "absent": self.absent,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class StudentSummary:
    records: Sequence[RedemptionRecord]
    statistics: AttendanceStatistics


@dataclass(frozen=True)
class ActivityAttendance:
    activity_label: str
    records: Sequence[RedemptionRecord]
    by_date: "OrderedDict[str, list[RedemptionRecord]]"


def count_statistics(records: Sequence[RedemptionRecord]) -> AttendanceStatistics:
    total = len(records)
    present = sum(1 for r in records if r.status == AttendanceStatus.PRESENT)
    percentage = round(present / total * 100, 2) if total else 0.0
    return AttendanceStatistics(total=total, present=present, absent=total - present, percentage=percentage)


def _day_bounds(start: Optional[date], end: Optional[date]) -> tuple[Optional[datetime], Optional[datetime]]:
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc) if start else None
    upper = datetime.combine(end, time.min, tzinfo=timezone.utc) + timedelta(days=1) if end else None
    return lower, upper


class AttendanceReportService:
    """Read side: simple per-student and per-activity listings with counts."""

    def __init__(self, records: AttendanceRepository, *, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._records = records
        self._history_limit = int(history_limit)

    def student_summary(
        self,
        principal: Optional[User],
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        activity_label: Optional[str] = None,
    ) -> Result[StudentSummary]:
        allowed = require_role(principal, PARTICIPANT_ROLES, action="student_report")
        if isinstance(allowed, Err):
            return allowed

        # date filter only applies when both ends are given
        lower, upper = _day_bounds(start, end) if start and end else (None, None)
        try:
            rows = self._records.list_for_student(
                principal.user_id,
                start=lower,
                end=upper,
                activity_label=activity_label or None,
                limit=self._history_limit,
            )
        except StoreUnavailableError:
            logger.exception("Student report failed | user=%s", principal.user_id)
            return fail(FailureKind.STORE_UNAVAILABLE)

        rows = list(rows)
        return Ok(StudentSummary(records=rows, statistics=count_statistics(rows)))

    def activity_attendance(
        self,
        principal: Optional[User],
        activity_label: str,
        *,
        on_date: Optional[date] = None,
    ) -> Result[ActivityAttendance]:
        allowed = require_role(principal, ISSUER_ROLES, action="activity_report")
        if isinstance(allowed, Err):
            return allowed

        lower, upper = _day_bounds(on_date, on_date)
        try:
            rows = list(self._records.list_for_activity(activity_label, start=lower, end=upper))
        except StoreUnavailableError:
            logger.exception("Activity report failed | user=%s | activity=%s", principal.user_id, activity_label)
            return fail(FailureKind.STORE_UNAVAILABLE)

        by_date: "OrderedDict[str, list[RedemptionRecord]]" = OrderedDict()
        for r in rows:
            by_date.setdefault(r.recorded_at.date().isoformat(), []).append(r)

        return Ok(ActivityAttendance(activity_label=activity_label, records=rows, by_date=by_date))
