from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from ..common.datetime_utils import from_epoch
from ..core.constants import TOKEN_TYPE_SESSION


@dataclass(frozen=True)
class AttendanceSession:
    """One class event, carried entirely inside its signed credential.

    Nothing is stored server-side until somebody redeems it.
    """

    session_id: str
    issuer_id: int
    issuer_name: str
    activity_label: str
    created_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedSession:
    credential: str
    session_id: str
    activity_label: str
    expires_at: datetime
    duration_minutes: int


def parse_session_claims(payload: Mapping[str, Any]) -> AttendanceSession:
    """Validate the shape of a decoded session payload; raises ValueError."""
    if payload.get("typ") != TOKEN_TYPE_SESSION:
        raise ValueError("not an attendance session credential")

    try:
        session_id = str(payload["sid"]).strip()
        activity = str(payload["activity"]).strip()
        issuer_id = int(payload["issuer_id"])
        created_at = from_epoch(int(payload["iat"]))
        expires_at = from_epoch(int(payload["exp"]))
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"malformed session claims: {e}") from e

    if not session_id or not activity:
        raise ValueError("session id and activity are required")

    return AttendanceSession(
        session_id=session_id,
        issuer_id=issuer_id,
        issuer_name=str(payload.get("issuer_name") or ""),
        activity_label=activity,
        created_at=created_at,
        expires_at=expires_at,
    )
