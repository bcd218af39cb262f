from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

BEARER_PREFIX = "Bearer "
QUERY_PARAM = "token"
CUSTOM_HEADER = "x-auth-token"
COOKIE_NAME = "token"


class CredentialSource(str, Enum):
    AUTHORIZATION_HEADER = "authorization_header"
    QUERY_PARAM = "query_param"
    CUSTOM_HEADER = "custom_header"
    COOKIE = "cookie"


@dataclass(frozen=True)
class ExtractedCredential:
    token: str
    source: CredentialSource


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        # plain dicts are case-sensitive, werkzeug Headers are not
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                return candidate
    return value


def extract_credential(
    *,
    headers: Mapping[str, str] | None = None,
    query: Mapping[str, str] | None = None,
    cookies: Mapping[str, str] | None = None,
) -> Optional[ExtractedCredential]:
    """Find the identity credential of a request.

    Sources are checked in a fixed order and the first non-empty one wins:
    ``Authorization: Bearer <token>``, the ``token`` query parameter, the
    ``x-auth-token`` header, the ``token`` cookie.
    """
    headers = headers or {}
    query = query or {}
    cookies = cookies or {}

    auth_header = _header(headers, "Authorization") or ""
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX):].strip()
        if token:
            return ExtractedCredential(token, CredentialSource.AUTHORIZATION_HEADER)

    token = (query.get(QUERY_PARAM) or "").strip()
    if token:
        return ExtractedCredential(token, CredentialSource.QUERY_PARAM)

    token = (_header(headers, CUSTOM_HEADER) or "").strip()
    if token:
        return ExtractedCredential(token, CredentialSource.CUSTOM_HEADER)

    token = (cookies.get(COOKIE_NAME) or "").strip()
    if token:
        return ExtractedCredential(token, CredentialSource.COOKIE)

    return None
