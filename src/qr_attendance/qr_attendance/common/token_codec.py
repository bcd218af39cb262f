from __future__ import annotations

from typing import Any, Iterable, Mapping

import jwt

from ..core.constants import JWT_ALGORITHM


class TokenCodec:
    """Sign and read HS256 JWTs.

    Time-based claims (``exp``, ``nbf``, ``iat``) are only checked for
    presence here; callers compare them against their own clock so expiry
    can be simulated in tests.
    """

    def __init__(self, secret: str, *, algorithm: str = JWT_ALGORITHM):
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._algorithm = algorithm

    def encode(self, claims: Mapping[str, Any]) -> str:
        # pyjwt returns str in v2+
        return jwt.encode(dict(claims), self._secret, algorithm=self._algorithm)

    def decode(self, token: str, *, required: Iterable[str] = ("exp", "iat")) -> dict:
        """Return the verified payload; raises ``jwt.InvalidTokenError`` subclasses."""
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={
                "verify_exp": False,
                "verify_nbf": False,
                "verify_iat": False,
                "require": list(required),
            },
        )
