from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, never on a concrete DB.
    Implementations raise StoreUnavailableError on timeouts/connectivity errors.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_roll_number(self, roll_number: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        roll_number: Optional[str] = None,
    ) -> Optional[int]:
        """Return the new id, or None when email/roll number already exist."""
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def update_password(self, user_id: int, *, password_hash: str, changed_at: datetime) -> bool:
        raise NotImplementedError

    def touch_last_login(self, user_id: int, at: datetime) -> None:
        raise NotImplementedError

    def touch_last_activity(self, user_id: int, at: datetime) -> None:
        raise NotImplementedError
