from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Optional

import jwt

from ..common.datetime_utils import Clock, from_epoch, to_epoch, utc_now
from ..common.token_codec import TokenCodec
from ..core.constants import CLOCK_SKEW_SECONDS, MAX_INACTIVE_DAYS
from ..core.exceptions import StoreUnavailableError
from ..core.failures import FailureKind
from ..core.result import Err, Ok, Result, fail
from ..users.model import User
from ..users.repository import UserRepository
from .activity import ActivityRecorder
from .credentials import parse_identity_claims

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """Who is asking, for log lines only."""

    method: str = "-"
    path: str = "-"
    ip: str = "-"


class IdentityVerifier:
    """Resolve a bearer credential to an active principal.

    Every attempt is logged once with its outcome code, the principal id when
    known and the latency.
    """

    def __init__(
        self,
        users: UserRepository,
        codec: TokenCodec,
        *,
        clock: Clock = utc_now,
        activity: Optional[ActivityRecorder] = None,
        max_inactive_days: int = MAX_INACTIVE_DAYS,
    ):
        self._users = users
        self._codec = codec
        self._clock = clock
        self._activity = activity
        self._max_inactive_days = int(max_inactive_days)

    def verify(self, raw_credential: Optional[str], *, context: Optional[RequestContext] = None) -> Result[User]:
        started = time.perf_counter()
        result = self._verify(raw_credential, context or RequestContext())
        self._log_attempt(result, context or RequestContext(), started)
        return result

    def _verify(self, raw_credential: Optional[str], context: RequestContext) -> Result[User]:
        if not raw_credential or not raw_credential.strip():
            return fail(FailureKind.NO_TOKEN, hint="Add Authorization header: Bearer <token>")

        try:
            claims = parse_identity_claims(self._codec.decode(raw_credential.strip()))
        except (jwt.InvalidTokenError, ValueError):
            return fail(FailureKind.INVALID_TOKEN)

        now = to_epoch(self._clock())
        if now >= claims.expires_at:
            return fail(
                FailureKind.TOKEN_EXPIRED,
                user_id=claims.user_id,
                expired_at=from_epoch(claims.expires_at).isoformat(),
            )
        if claims.not_before is not None and claims.not_before > now + CLOCK_SKEW_SECONDS:
            return fail(FailureKind.TOKEN_NOT_ACTIVE, user_id=claims.user_id,
                        active_from=from_epoch(claims.not_before).isoformat())
        if claims.issued_at > now + CLOCK_SKEW_SECONDS:
            return fail(FailureKind.TOKEN_NOT_ACTIVE, user_id=claims.user_id,
                        active_from=from_epoch(claims.issued_at).isoformat())

        try:
            user = self._users.get_by_id(claims.user_id)
        except StoreUnavailableError:
            logger.exception(
                "Principal lookup failed | user=%s | %s %s | ip=%s",
                claims.user_id, context.method, context.path, context.ip,
            )
            return fail(FailureKind.STORE_UNAVAILABLE, user_id=claims.user_id)

        if user is None:
            return fail(FailureKind.USER_NOT_FOUND, user_id=claims.user_id)
        if not user.is_active:
            return fail(FailureKind.USER_INACTIVE, user_id=claims.user_id, action="Please contact administrator")

        if user.password_changed_at is not None:
            changed_at = math.floor(user.password_changed_at.timestamp())
            if claims.issued_at < changed_at:
                return fail(FailureKind.PASSWORD_CHANGED, user_id=user.user_id)

        self._warn_if_dormant(user)
        if self._activity is not None:
            self._activity.record(user.user_id, self._clock())
        return Ok(user)

    def _warn_if_dormant(self, user: User) -> None:
        if user.last_login is None:
            return
        idle_days = (self._clock() - user.last_login).days
        if idle_days > self._max_inactive_days:
            logger.warning("User %s inactive for %d days", user.user_id, idle_days)

    @staticmethod
    def _log_attempt(result: Result[User], context: RequestContext, started: float) -> None:
        duration_ms = int((time.perf_counter() - started) * 1000)
        if isinstance(result, Err):
            user_id = result.failure.details.get("user_id", "unknown")
            logger.warning(
                "Auth attempt: %s | user=%s | %s %s | %dms",
                result.kind.value, user_id, context.method, context.path, duration_ms,
            )
        else:
            logger.info(
                "Auth attempt: SUCCESS | user=%s | %s %s | %dms",
                result.value.user_id, context.method, context.path, duration_ms,
            )
