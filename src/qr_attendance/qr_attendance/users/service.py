from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import Clock, utc_now
from ..common.validators import require_email, require_max_length, require_min_length, require_non_empty
from ..core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, MAX_ROLL_NUMBER_LENGTH, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import StoreUnavailableError, ValidationError
from ..core.failures import FailureKind
from ..core.result import Err, Ok, Result, fail
from ..identity.credentials import IdentityCredentialIssuer, IssuedIdentityCredential
from ..identity.guards import require_role
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _password_matches(user: User, password: str) -> bool:
    try:
        return check_password_hash(user.password_hash, password)
    except ValueError:
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


@dataclass(frozen=True)
class LoginResult:
    """What the client gets back after login/registration."""

    user: User
    credential: IssuedIdentityCredential


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository, credentials: IdentityCredentialIssuer, *, clock: Clock = utc_now):
        self._users = users
        self._credentials = credentials
        self._clock = clock

    def authenticate(self, email: str, password: str) -> Result[LoginResult]:
        if not email or not password:
            return fail(FailureKind.INVALID_INPUT, "Email and password are required")

        try:
            user = self._users.get_by_email(email.strip().lower())
        except StoreUnavailableError:
            logger.exception("Login lookup failed | email=%s", email)
            return fail(FailureKind.STORE_UNAVAILABLE)

        if not user:
            return fail(FailureKind.INVALID_CREDENTIALS)
        if not user.is_active:
            return fail(FailureKind.ACCOUNT_DEACTIVATED)

        if not _password_matches(user, password):
            return fail(FailureKind.INVALID_CREDENTIALS)

        try:
            self._users.touch_last_login(user.user_id, self._clock())
        except StoreUnavailableError:
            logger.warning("Could not update last login for user=%s", user.user_id)

        logger.info("Login | user=%s | role=%s", user.user_id, user.role.value)
        return Ok(LoginResult(user=user, credential=self._credentials.issue(user)))


class UserService:
    """Use case: manage accounts (registration, password rotation, activation)."""

    def __init__(self, users: UserRepository, credentials: IdentityCredentialIssuer, *, clock: Clock = utc_now):
        self._users = users
        self._credentials = credentials
        self._clock = clock

    def register(
        self,
        *,
        full_name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
        roll_number: Optional[str] = None,
    ) -> Result[LoginResult]:
        try:
            full_name = require_max_length(require_non_empty(full_name, "Name"), "Name", MAX_NAME_LENGTH)
            email = require_max_length(require_email(email), "Email", MAX_EMAIL_LENGTH)
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            account_role = self._parse_role(role)
            roll_number = (roll_number or "").strip() or None
            require_max_length(roll_number, "Roll Number", MAX_ROLL_NUMBER_LENGTH)
            if account_role == Role.STUDENT and not roll_number:
                raise ValidationError("Roll number is required for students")
        except ValidationError as e:
            return fail(FailureKind.INVALID_INPUT, str(e))

        try:
            if self._users.get_by_email(email):
                return fail(FailureKind.ALREADY_EXISTS, "Email already exists", field="email")
            if roll_number and self._users.get_by_roll_number(roll_number):
                return fail(FailureKind.ALREADY_EXISTS, "Roll Number already exists", field="roll_number")

            user_id = self._users.create_user(
                full_name=full_name,
                email=email,
                password_hash=generate_password_hash(password),
                role=account_role,
                roll_number=roll_number,
            )
            # lost a race against a concurrent registration
            if user_id is None:
                return fail(FailureKind.ALREADY_EXISTS, "Email or Roll Number already exists")

            user = self._users.get_by_id(user_id)
        except StoreUnavailableError:
            logger.exception("Registration failed | email=%s", email)
            return fail(FailureKind.STORE_UNAVAILABLE)

        logger.info("Registered | user=%s | role=%s", user.user_id, user.role.value)
        return Ok(LoginResult(user=user, credential=self._credentials.issue(user)))

    def check_email(self, email: str) -> Result[bool]:
        """Whether an account already uses this email (registration form pre-check)."""
        if not email or not str(email).strip():
            return fail(FailureKind.INVALID_INPUT, "Email is required")

        try:
            return Ok(self._users.get_by_email(str(email).strip().lower()) is not None)
        except StoreUnavailableError:
            logger.exception("Email check failed | email=%s", email)
            return fail(FailureKind.STORE_UNAVAILABLE)

    def change_password(self, user: User, *, current_password: str, new_password: str) -> Result[IssuedIdentityCredential]:
        """Rotate the password; every credential issued before now stops verifying."""
        try:
            require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)
        except ValidationError as e:
            return fail(FailureKind.INVALID_INPUT, str(e))

        if not _password_matches(user, current_password or ""):
            return fail(FailureKind.INVALID_CREDENTIALS, "Current password is incorrect")

        # whole seconds: DATETIME columns round fractions, which could reject the new credential
        changed_at = self._clock().replace(microsecond=0)
        try:
            self._users.update_password(
                user.user_id, password_hash=generate_password_hash(new_password), changed_at=changed_at
            )
            refreshed = self._users.get_by_id(user.user_id)
        except StoreUnavailableError:
            logger.exception("Password change failed | user=%s", user.user_id)
            return fail(FailureKind.STORE_UNAVAILABLE)

        logger.info("Password changed | user=%s", user.user_id)
        return Ok(self._credentials.issue(refreshed or user))

    def set_active(self, actor: Optional[User], user_id: int, *, is_active: bool) -> Result[User]:
        allowed = require_role(actor, {Role.ADMIN}, action="set_active")
        if isinstance(allowed, Err):
            return allowed
        if actor.user_id == int(user_id) and not is_active:
            return fail(FailureKind.INVALID_INPUT, "Administrators cannot deactivate themselves")

        try:
            if not self._users.set_active(int(user_id), is_active=is_active):
                return fail(FailureKind.NOT_FOUND, "User not found")
            user = self._users.get_by_id(int(user_id))
        except StoreUnavailableError:
            logger.exception("Activation change failed | actor=%s | user=%s", actor.user_id, user_id)
            return fail(FailureKind.STORE_UNAVAILABLE)

        logger.info("Account %s | user=%s | by=%s", "activated" if is_active else "deactivated", user_id, actor.user_id)
        return Ok(user)

    @staticmethod
    def _parse_role(role: Optional[str]) -> Role:
        if not role:
            return Role.STUDENT
        try:
            parsed = Role(str(role).strip().lower())
        except ValueError:
            raise ValidationError("Invalid role")
        if parsed == Role.ADMIN:
            raise ValidationError("Administrator accounts cannot self-register")
        return parsed
