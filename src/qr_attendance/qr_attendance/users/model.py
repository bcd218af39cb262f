from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role
from ..core.permissions import permissions_for


@dataclass(frozen=True)
class User:
    """Domain entity: an account, and the principal behind every credential.

    Note: Plain data object (no DB access code).
    """

    user_id: int
    full_name: str
    email: str
    password_hash: str
    role: Role
    roll_number: Optional[str] = None
    is_active: bool = True
    password_changed_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    last_activity: Optional[datetime] = None

    def public_view(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "roll_number": self.roll_number,
            "is_active": self.is_active,
            "permissions": permissions_for(self.role),
        }
