from __future__ import annotations

from functools import wraps
from typing import Iterable

from flask import g, jsonify, request

from ..core.enums import Role
from ..core.failures import Failure, ResponseCode
from ..core.result import Err
from .extraction import extract_credential
from .guards import require_role
from .verifier import IdentityVerifier, RequestContext

HTTP_STATUS = {
    ResponseCode.UNAUTHENTICATED: 401,
    ResponseCode.FORBIDDEN: 403,
    ResponseCode.NOT_FOUND: 404,
    ResponseCode.CONFLICT: 409,
    ResponseCode.BAD_REQUEST: 400,
    ResponseCode.INTERNAL: 500,
}

# kept for log lines, not echoed back to clients
_PRIVATE_DETAILS = {"user_id"}


def failure_response(failure: Failure):
    body = {
        "success": False,
        "code": failure.kind.value,
        "message": failure.message,
    }
    body.update({k: v for k, v in failure.details.items() if k not in _PRIVATE_DETAILS})
    return jsonify(body), HTTP_STATUS[failure.response_code]


def request_context() -> RequestContext:
    return RequestContext(method=request.method, path=request.path, ip=request.remote_addr or "-")


def auth_required(verifier: IdentityVerifier):
    """Resolve the caller's identity credential into ``g.principal`` or reject."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            found = extract_credential(headers=request.headers, query=request.args, cookies=request.cookies)
            result = verifier.verify(found.token if found else None, context=request_context())
            if isinstance(result, Err):
                return failure_response(result.failure)

            g.principal = result.value
            return view(*args, **kwargs)

        return wrapper

    return decorator


def role_required(*allowed_roles: Role):
    """Gate a view on ``g.principal.role``; stack below ``auth_required``."""
    allowed: Iterable[Role] = frozenset(allowed_roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            result = require_role(g.get("principal"), allowed, action=request.endpoint or request.path)
            if isinstance(result, Err):
                return failure_response(result.failure)
            return view(*args, **kwargs)

        return wrapper

    return decorator
