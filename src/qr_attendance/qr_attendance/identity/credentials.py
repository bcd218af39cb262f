from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from ..common.datetime_utils import Clock, from_epoch, to_epoch, utc_now
from ..common.token_codec import TokenCodec
from ..core.constants import DEFAULT_IDENTITY_TOKEN_DAYS, TOKEN_TYPE_IDENTITY
from ..core.enums import Role
from ..users.model import User


@dataclass(frozen=True)
class IdentityClaims:
    user_id: int
    role: Role
    issued_at: int
    expires_at: int
    not_before: Optional[int] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class IssuedIdentityCredential:
    token: str
    expires_at: datetime


def parse_identity_claims(payload: Mapping[str, Any]) -> IdentityClaims:
    """Validate the shape of a decoded identity payload; raises ValueError."""
    if payload.get("typ") != TOKEN_TYPE_IDENTITY:
        raise ValueError("not an identity credential")

    try:
        user_id = int(payload["sub"])
        role = Role(payload["role"])
        issued_at = int(payload["iat"])
        expires_at = int(payload["exp"])
        not_before = int(payload["nbf"]) if payload.get("nbf") is not None else None
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"malformed identity claims: {e}") from e

    return IdentityClaims(
        user_id=user_id,
        role=role,
        issued_at=issued_at,
        expires_at=expires_at,
        not_before=not_before,
        email=payload.get("email"),
    )


class IdentityCredentialIssuer:
    """Mint long-lived identity credentials at login/registration."""

    def __init__(
        self,
        codec: TokenCodec,
        *,
        lifetime: timedelta = timedelta(days=DEFAULT_IDENTITY_TOKEN_DAYS),
        clock: Clock = utc_now,
    ):
        self._codec = codec
        self._lifetime = lifetime
        self._clock = clock

    def issue(self, user: User) -> IssuedIdentityCredential:
        now = self._clock()
        expires_at = now + self._lifetime
        token = self._codec.encode(
            {
                "typ": TOKEN_TYPE_IDENTITY,
                "sub": str(user.user_id),
                "role": user.role.value,
                "email": user.email,
                "iat": to_epoch(now),
                "exp": to_epoch(expires_at),
            }
        )
        return IssuedIdentityCredential(token=token, expires_at=from_epoch(to_epoch(expires_at)))
