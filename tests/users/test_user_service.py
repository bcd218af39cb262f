from __future__ import annotations

from dataclasses import replace

import pytest

from qr_attendance.core.enums import Role
from qr_attendance.core.failures import FailureKind
from qr_attendance.core.result import Ok


def test_login_issues_identity_credential(container, users_repo, clock, student):
    result = container.auth_service.authenticate("STUDENT2@example.com", "secret123")

    assert isinstance(result, Ok)
    assert result.value.user.user_id == student.user_id
    assert users_repo.get_by_id(student.user_id).last_login == clock()
    assert isinstance(container.identity_verifier.verify(result.value.credential.token), Ok)


def test_login_wrong_password_and_unknown_email_look_the_same(container, student):
    wrong = container.auth_service.authenticate(student.email, "nope")
    unknown = container.auth_service.authenticate("ghost@example.com", "secret123")

    assert wrong.kind == unknown.kind == FailureKind.INVALID_CREDENTIALS
    assert wrong.failure.message == unknown.failure.message


def test_login_deactivated_account(container, users_repo, student):
    users_repo.set_active(student.user_id, is_active=False)

    assert container.auth_service.authenticate(student.email, "secret123").kind == FailureKind.ACCOUNT_DEACTIVATED


def test_register_student(container):
    result = container.user_service.register(
        full_name="Ravi", email="Ravi@Example.com", password="pw12345", role="student", roll_number="BCA010"
    )

    assert isinstance(result, Ok)
    assert result.value.user.email == "ravi@example.com"
    assert result.value.user.role == Role.STUDENT
    assert isinstance(container.identity_verifier.verify(result.value.credential.token), Ok)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(full_name="", email="a@b.co", password="pw12345", roll_number="R1"),
        dict(full_name="A", email="not-an-email", password="pw12345", roll_number="R1"),
        dict(full_name="A", email="a@b.co", password="short", roll_number="R1"),
        dict(full_name="A", email="a@b.co", password="pw12345"),
        dict(full_name="A", email="a@b.co", password="pw12345", role="admin"),
        dict(full_name="A", email="a@b.co", password="pw12345", role="wizard"),
    ],
)
def test_register_rejects_invalid_input(container, kwargs):
    assert container.user_service.register(**kwargs).kind == FailureKind.INVALID_INPUT


def test_register_teacher_needs_no_roll_number(container):
    result = container.user_service.register(full_name="T", email="t@b.co", password="pw12345", role="teacher")

    assert result.value.user.role == Role.TEACHER


def test_register_duplicates(container, student):
    dup_email = container.user_service.register(
        full_name="X", email=student.email, password="pw12345", roll_number="NEW1"
    )
    dup_roll = container.user_service.register(
        full_name="X", email="x@b.co", password="pw12345", roll_number=student.roll_number
    )

    assert dup_email.kind == FailureKind.ALREADY_EXISTS
    assert dup_roll.kind == FailureKind.ALREADY_EXISTS


def test_change_password_revokes_older_credentials(container, clock, student):
    old_token = container.auth_service.authenticate(student.email, "secret123").value.credential.token
    clock.advance(minutes=10)

    result = container.user_service.change_password(student, current_password="secret123", new_password="brandnew1")

    assert isinstance(result, Ok)
    assert container.identity_verifier.verify(old_token).kind == FailureKind.PASSWORD_CHANGED
    assert isinstance(container.identity_verifier.verify(result.value.token), Ok)
    assert isinstance(container.auth_service.authenticate(student.email, "brandnew1"), Ok)


def test_change_password_requires_current_password(container, student):
    result = container.user_service.change_password(student, current_password="wrong", new_password="brandnew1")

    assert result.kind == FailureKind.INVALID_CREDENTIALS


def test_admin_toggles_active_flag(container, admin, student):
    result = container.user_service.set_active(admin, student.user_id, is_active=False)

    assert isinstance(result, Ok)
    assert result.value.is_active is False


def test_only_admin_toggles_active_flag(container, teacher, student):
    assert container.user_service.set_active(teacher, student.user_id, is_active=False).kind == (
        FailureKind.ROLE_PERMISSION_DENIED
    )


def test_set_active_unknown_user(container, admin):
    assert container.user_service.set_active(admin, 404, is_active=True).kind == FailureKind.NOT_FOUND


def test_store_outage_during_login(container, users_repo, student):
    users_repo.fail_lookups = True

    assert container.auth_service.authenticate(student.email, "secret123").kind == FailureKind.STORE_UNAVAILABLE


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(full_name="N" * 101, email="a@b.co", password="pw12345", roll_number="R1"),
        dict(full_name="A", email="a" * 190 + "@b.co", password="pw12345", roll_number="R1"),
        dict(full_name="A", email="a@b.co", password="pw12345", roll_number="R" * 51),
    ],
)
def test_register_rejects_values_wider_than_columns(container, users_repo, kwargs):
    assert container.user_service.register(**kwargs).kind == FailureKind.INVALID_INPUT
    assert users_repo.get_by_email("a@b.co") is None


def test_check_email(container, student):
    assert container.user_service.check_email(student.email.upper()).value is True
    assert container.user_service.check_email("nobody@example.com").value is False
    assert container.user_service.check_email("  ").kind == FailureKind.INVALID_INPUT


def test_check_email_store_outage(container, users_repo):
    users_repo.fail_lookups = True

    assert container.user_service.check_email("a@b.co").kind == FailureKind.STORE_UNAVAILABLE


def test_change_password_with_placeholder_hash(container, users_repo, student):
    users_repo.add(replace(student, password_hash="CHANGE_ME"))
    stale = users_repo.get_by_id(student.user_id)

    result = container.user_service.change_password(stale, current_password="secret123", new_password="brandnew1")

    assert result.kind == FailureKind.INVALID_CREDENTIALS


def test_public_view_lists_role_permissions(student, teacher, admin):
    assert "scan_qr" in student.public_view()["permissions"]
    assert "generate_qr" in teacher.public_view()["permissions"]
    assert "generate_qr" not in student.public_view()["permissions"]
    assert "manage_users" in admin.public_view()["permissions"]
