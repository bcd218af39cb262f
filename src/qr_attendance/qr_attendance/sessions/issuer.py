from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Callable, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, from_epoch, to_epoch, utc_now
from ..common.token_codec import TokenCodec
from ..common.validators import require_max_length, require_non_empty, require_positive_int
from ..core.constants import (
    DEFAULT_SESSION_MINUTES,
    MAX_ACTIVITY_LABEL_LENGTH,
    MAX_SESSION_MINUTES,
    SESSION_ID_PREFIX,
    TOKEN_TYPE_SESSION,
)
from ..core.enums import ISSUER_ROLES
from ..core.exceptions import StoreUnavailableError, ValidationError
from ..core.failures import FailureKind
from ..core.result import Err, Ok, Result, fail
from ..identity.guards import require_role
from ..users.model import User
from .model import IssuedSession

logger = logging.getLogger(__name__)


def new_session_id(clock: Clock = utc_now) -> str:
    """``QR_<epoch millis>_<random suffix>``; 64 random bits per millisecond."""
    millis = int(clock().timestamp() * 1000)
    return f"{SESSION_ID_PREFIX}_{millis}_{secrets.token_urlsafe(8)}"


class SessionIssuer:
    """Use case: a teacher opens a short attendance window for one activity."""

    def __init__(
        self,
        codec: TokenCodec,
        *,
        records: Optional[AttendanceRepository] = None,
        clock: Clock = utc_now,
        default_minutes: int = DEFAULT_SESSION_MINUTES,
        max_minutes: int = MAX_SESSION_MINUTES,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._codec = codec
        self._records = records
        self._clock = clock
        self._default_minutes = int(default_minutes)
        self._max_minutes = int(max_minutes)
        self._id_factory = id_factory or (lambda: new_session_id(self._clock))

    def issue(self, principal: Optional[User], activity_label: str, duration_minutes: Optional[int] = None) -> Result[IssuedSession]:
        allowed = require_role(principal, ISSUER_ROLES, action="issue_session")
        if isinstance(allowed, Err):
            return allowed

        try:
            label = require_non_empty(activity_label, "Subject")
            require_max_length(label, "Subject", MAX_ACTIVITY_LABEL_LENGTH)
            minutes = self._resolve_duration(duration_minutes)
        except ValidationError as e:
            return fail(FailureKind.INVALID_INPUT, str(e))

        session_id = self._id_factory()
        collision = self._check_collision(session_id, principal)
        if collision is not None:
            return collision

        now = self._clock()
        expires_at = now + timedelta(minutes=minutes)
        credential = self._codec.encode(
            {
                "typ": TOKEN_TYPE_SESSION,
                "sid": session_id,
                "issuer_id": principal.user_id,
                "issuer_name": principal.full_name,
                "activity": label,
                "iat": to_epoch(now),
                "exp": to_epoch(expires_at),
            }
        )

        logger.info(
            "Attendance session issued | session=%s | issuer=%s | activity=%s | minutes=%d",
            session_id, principal.user_id, label, minutes,
        )
        return Ok(
            IssuedSession(
                credential=credential,
                session_id=session_id,
                activity_label=label,
                expires_at=from_epoch(to_epoch(expires_at)),
                duration_minutes=minutes,
            )
        )

    def _resolve_duration(self, duration_minutes: Optional[int]) -> int:
        if duration_minutes is None or duration_minutes == "":
            return self._default_minutes

        minutes = require_positive_int(duration_minutes, "Duration")
        if minutes > self._max_minutes:
            logger.info("Session duration %d capped to %d minutes", minutes, self._max_minutes)
            return self._max_minutes
        return minutes

    def _check_collision(self, session_id: str, principal: User) -> Optional[Err]:
        if self._records is None:
            return None
        try:
            taken = self._records.has_session(session_id)
        except StoreUnavailableError:
            logger.exception("Session id check failed | issuer=%s", principal.user_id)
            return fail(FailureKind.STORE_UNAVAILABLE)
        if taken:
            logger.error("Session id collision | session=%s | issuer=%s", session_id, principal.user_id)
            return fail(FailureKind.SESSION_ID_COLLISION)
        return None
