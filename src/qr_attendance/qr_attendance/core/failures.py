from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ResponseCode(str, Enum):
    """Transport-neutral response classes; the HTTP layer maps them to status codes."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL = "INTERNAL"


class FailureKind(str, Enum):
    # authentication
    NO_TOKEN = "NO_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_NOT_ACTIVE = "TOKEN_NOT_ACTIVE"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_INACTIVE = "USER_INACTIVE"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    # authorization
    ROLE_PERMISSION_DENIED = "ROLE_PERMISSION_DENIED"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    # attendance sessions
    INVALID_SESSION_FORMAT = "INVALID_SESSION_FORMAT"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    SESSION_ID_COLLISION = "SESSION_ID_COLLISION"
    DUPLICATE_REDEMPTION = "DUPLICATE_REDEMPTION"
    # input / store
    INVALID_INPUT = "INVALID_INPUT"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    NOT_FOUND = "NOT_FOUND"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    @property
    def response_code(self) -> ResponseCode:
        return _RESPONSE_CODES[self]

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_RESPONSE_CODES = {
    FailureKind.NO_TOKEN: ResponseCode.UNAUTHENTICATED,
    FailureKind.INVALID_TOKEN: ResponseCode.UNAUTHENTICATED,
    FailureKind.TOKEN_EXPIRED: ResponseCode.UNAUTHENTICATED,
    FailureKind.TOKEN_NOT_ACTIVE: ResponseCode.UNAUTHENTICATED,
    FailureKind.USER_NOT_FOUND: ResponseCode.UNAUTHENTICATED,
    FailureKind.USER_INACTIVE: ResponseCode.UNAUTHENTICATED,
    FailureKind.PASSWORD_CHANGED: ResponseCode.UNAUTHENTICATED,
    FailureKind.INVALID_CREDENTIALS: ResponseCode.UNAUTHENTICATED,
    FailureKind.ROLE_PERMISSION_DENIED: ResponseCode.FORBIDDEN,
    FailureKind.ACCOUNT_DEACTIVATED: ResponseCode.FORBIDDEN,
    FailureKind.INVALID_SESSION_FORMAT: ResponseCode.BAD_REQUEST,
    FailureKind.SESSION_EXPIRED: ResponseCode.BAD_REQUEST,
    FailureKind.SESSION_ID_COLLISION: ResponseCode.INTERNAL,
    FailureKind.DUPLICATE_REDEMPTION: ResponseCode.CONFLICT,
    FailureKind.INVALID_INPUT: ResponseCode.BAD_REQUEST,
    FailureKind.ALREADY_EXISTS: ResponseCode.CONFLICT,
    FailureKind.NOT_FOUND: ResponseCode.NOT_FOUND,
    FailureKind.STORE_UNAVAILABLE: ResponseCode.INTERNAL,
}

_MESSAGES = {
    FailureKind.NO_TOKEN: "Authentication required. Please login first.",
    FailureKind.INVALID_TOKEN: "Invalid or malformed authentication token",
    FailureKind.TOKEN_EXPIRED: "Session expired. Please login again.",
    FailureKind.TOKEN_NOT_ACTIVE: "Token not yet valid",
    FailureKind.USER_NOT_FOUND: "User account not found",
    FailureKind.USER_INACTIVE: "User account not found or deactivated",
    FailureKind.PASSWORD_CHANGED: "Password was changed. Please login again.",
    FailureKind.INVALID_CREDENTIALS: "Invalid credentials",
    FailureKind.ROLE_PERMISSION_DENIED: "Access denied for this role",
    FailureKind.ACCOUNT_DEACTIVATED: "Account is deactivated. Please contact admin.",
    FailureKind.INVALID_SESSION_FORMAT: "Invalid attendance QR code",
    FailureKind.SESSION_EXPIRED: "QR code has expired. Ask for a new one.",
    FailureKind.SESSION_ID_COLLISION: "Could not allocate a unique session id",
    FailureKind.DUPLICATE_REDEMPTION: "Attendance already marked for this session",
    FailureKind.INVALID_INPUT: "Invalid input",
    FailureKind.ALREADY_EXISTS: "Already exists",
    FailureKind.NOT_FOUND: "Not found",
    FailureKind.STORE_UNAVAILABLE: "Storage temporarily unavailable",
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def response_code(self) -> ResponseCode:
        return self.kind.response_code
