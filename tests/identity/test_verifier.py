from __future__ import annotations

import logging
from dataclasses import replace
from datetime import timedelta

import pytest

from qr_attendance.common.datetime_utils import to_epoch
from qr_attendance.common.token_codec import TokenCodec
from qr_attendance.core.enums import Role
from qr_attendance.core.failures import FailureKind, ResponseCode
from qr_attendance.core.result import Err, Ok
from qr_attendance.identity.credentials import IdentityCredentialIssuer


@pytest.fixture
def codec(auth_settings):
    return TokenCodec(auth_settings.jwt_secret)


@pytest.fixture
def issuer(codec, clock):
    return IdentityCredentialIssuer(codec, clock=clock)


def test_valid_credential_resolves_principal(container, issuer, student):
    token = issuer.issue(student).token

    result = container.identity_verifier.verify(token)

    assert isinstance(result, Ok)
    assert result.value.user_id == student.user_id
    assert result.value.role == Role.STUDENT


def test_missing_credential_is_no_token(container):
    result = container.identity_verifier.verify(None)

    assert isinstance(result, Err)
    assert result.kind == FailureKind.NO_TOKEN
    assert result.failure.response_code == ResponseCode.UNAUTHENTICATED


def test_forged_signature_is_invalid_token(container, clock, student):
    forged = IdentityCredentialIssuer(TokenCodec("someone-else"), clock=clock).issue(student).token

    result = container.identity_verifier.verify(forged)

    assert result.kind == FailureKind.INVALID_TOKEN


def test_garbage_is_invalid_token(container):
    assert container.identity_verifier.verify("not-a-jwt").kind == FailureKind.INVALID_TOKEN


def test_expired_credential_fails_even_with_valid_signature(container, issuer, clock, student):
    token = issuer.issue(student).token
    clock.advance(days=7, seconds=1)

    result = container.identity_verifier.verify(token)

    assert result.kind == FailureKind.TOKEN_EXPIRED
    assert "expired_at" in result.failure.details


def test_credential_valid_until_just_before_expiry(container, issuer, clock, student):
    token = issuer.issue(student).token
    clock.advance(days=7, seconds=-1)

    assert isinstance(container.identity_verifier.verify(token), Ok)


def test_not_yet_valid_credential(container, codec, clock, student):
    now = to_epoch(clock())
    token = codec.encode(
        {"typ": "identity", "sub": str(student.user_id), "role": "student",
         "iat": now, "nbf": now + 3600, "exp": now + 7200}
    )

    assert container.identity_verifier.verify(token).kind == FailureKind.TOKEN_NOT_ACTIVE


def test_session_credential_cannot_authenticate(container, codec, clock, student):
    now = to_epoch(clock())
    token = codec.encode(
        {"typ": "attendance_session", "sub": str(student.user_id), "role": "student",
         "iat": now, "exp": now + 600}
    )

    assert container.identity_verifier.verify(token).kind == FailureKind.INVALID_TOKEN


def test_unknown_principal(container, codec, clock):
    now = to_epoch(clock())
    token = codec.encode({"typ": "identity", "sub": "999", "role": "student", "iat": now, "exp": now + 60})

    assert container.identity_verifier.verify(token).kind == FailureKind.USER_NOT_FOUND


def test_deactivated_principal(container, issuer, users_repo, student):
    token = issuer.issue(student).token
    users_repo.set_active(student.user_id, is_active=False)

    assert container.identity_verifier.verify(token).kind == FailureKind.USER_INACTIVE


def test_credential_issued_before_password_change(container, issuer, users_repo, clock, student):
    token = issuer.issue(student).token
    clock.advance(minutes=5)
    users_repo.update_password(student.user_id, password_hash="x", changed_at=clock())

    result = container.identity_verifier.verify(token)

    assert result.kind == FailureKind.PASSWORD_CHANGED


def test_credential_issued_after_password_change(container, issuer, users_repo, clock, student):
    users_repo.update_password(student.user_id, password_hash="x", changed_at=clock())
    clock.advance(seconds=1)
    token = issuer.issue(users_repo.get_by_id(student.user_id)).token

    assert isinstance(container.identity_verifier.verify(token), Ok)


def test_store_timeout_is_store_unavailable(container, issuer, users_repo, student):
    token = issuer.issue(student).token
    users_repo.fail_lookups = True

    result = container.identity_verifier.verify(token)

    assert result.kind == FailureKind.STORE_UNAVAILABLE
    assert result.failure.response_code == ResponseCode.INTERNAL


def test_success_records_last_activity(container, issuer, users_repo, clock, student):
    container.identity_verifier.verify(issuer.issue(student).token)

    assert users_repo.activity_calls == [(student.user_id, clock())]


def test_last_activity_failure_does_not_fail_request(container, issuer, users_repo, student, caplog):
    users_repo.fail_activity = True

    with caplog.at_level(logging.WARNING):
        result = container.identity_verifier.verify(issuer.issue(student).token)

    assert isinstance(result, Ok)
    assert "Could not update last activity" in caplog.text


def test_every_attempt_is_logged(container, issuer, student, caplog):
    with caplog.at_level(logging.INFO, logger="qr_attendance.identity.verifier"):
        container.identity_verifier.verify(issuer.issue(student).token)
        container.identity_verifier.verify("nope")

    messages = [r.getMessage() for r in caplog.records if r.name == "qr_attendance.identity.verifier"]
    assert any("SUCCESS" in m and f"user={student.user_id}" in m for m in messages)
    assert any("INVALID_TOKEN" in m and "user=unknown" in m for m in messages)


def test_dormant_principal_is_admitted_with_warning(container, issuer, users_repo, clock, student, caplog):
    users_repo.add(replace(student, last_login=clock() - timedelta(days=45)))

    with caplog.at_level(logging.WARNING):
        result = container.identity_verifier.verify(issuer.issue(student).token)

    assert isinstance(result, Ok)
    assert "inactive for 45 days" in caplog.text
