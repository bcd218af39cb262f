from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.enums import Role
from ..core.failures import FailureKind
from ..core.result import Ok, Result, fail
from ..users.model import User

logger = logging.getLogger(__name__)


def require_role(principal: Optional[User], allowed_roles: Iterable[Role], *, action: str = "") -> Result[User]:
    """Single role gate shared by the issuer, the redemption engine and the HTTP layer."""
    allowed = frozenset(allowed_roles)
    required = sorted(r.value for r in allowed)

    if principal is None:
        return fail(FailureKind.NO_TOKEN, "Authentication required before checking roles")

    if principal.role not in allowed:
        logger.warning(
            "Authorization: ROLE_DENIED | role=%s | required=%s | user=%s | action=%s",
            principal.role.value, ",".join(required), principal.user_id, action,
        )
        return fail(
            FailureKind.ROLE_PERMISSION_DENIED,
            f"Access denied. This action requires {' or '.join(required)} role.",
            user_role=principal.role.value,
            required_roles=required,
        )

    logger.debug(
        "Authorization: ROLE_ALLOWED | role=%s | required=%s | action=%s",
        principal.role.value, ",".join(required), action,
    )
    return Ok(principal)
