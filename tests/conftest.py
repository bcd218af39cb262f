from __future__ import annotations

import os
import threading
from concurrent.futures import Executor, Future
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

os.environ.setdefault("APP_ENV", "testing")

from qr_attendance.attendance.model import RedemptionRecord
from qr_attendance.container import AuthSettings, build_services
from qr_attendance.core.enums import InsertOutcome, Role
from qr_attendance.core.exceptions import StoreUnavailableError
from qr_attendance.identity.activity import ActivityRecorder
from qr_attendance.users.model import User


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class ImmediateExecutor(Executor):
    """Runs submitted work inline so background effects are visible at once."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class InMemoryUsers:
    def __init__(self):
        self._by_id: dict[int, User] = {}
        self._next_id = 0
        self._lock = threading.Lock()
        self.fail_lookups = False
        self.fail_activity = False
        self.activity_calls: list[tuple[int, datetime]] = []

    def add(self, user: User) -> User:
        self._by_id[user.user_id] = user
        self._next_id = max(self._next_id, user.user_id)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        if self.fail_lookups:
            raise StoreUnavailableError("lookup timed out")
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        if self.fail_lookups:
            raise StoreUnavailableError("lookup timed out")
        return next((u for u in self._by_id.values() if u.email == email.lower()), None)

    def get_by_roll_number(self, roll_number: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.roll_number == roll_number), None)

    def create_user(self, *, full_name, email, password_hash, role, roll_number=None) -> Optional[int]:
        with self._lock:
            if self.get_by_email(email) or (roll_number and self.get_by_roll_number(roll_number)):
                return None
            self._next_id += 1
            self._by_id[self._next_id] = User(
                user_id=self._next_id,
                full_name=full_name,
                email=email.lower(),
                password_hash=password_hash,
                role=role,
                roll_number=roll_number,
            )
            return self._next_id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        user = self._by_id.get(int(user_id))
        if not user:
            return False
        self._by_id[user.user_id] = replace(user, is_active=is_active)
        return True

    def update_password(self, user_id: int, *, password_hash: str, changed_at: datetime) -> bool:
        user = self._by_id.get(int(user_id))
        if not user:
            return False
        self._by_id[user.user_id] = replace(user, password_hash=password_hash, password_changed_at=changed_at)
        return True

    def touch_last_login(self, user_id: int, at: datetime) -> None:
        user = self._by_id[int(user_id)]
        self._by_id[user.user_id] = replace(user, last_login=at)

    def touch_last_activity(self, user_id: int, at: datetime) -> None:
        if self.fail_activity:
            raise StoreUnavailableError("activity write timed out")
        self.activity_calls.append((int(user_id), at))


class InMemoryAttendance:
    """Record store whose insert-if-absent is atomic under a lock."""

    def __init__(self):
        self._records: dict[tuple[str, int], RedemptionRecord] = {}
        self._lock = threading.Lock()
        self._next_id = 0
        self.fail_writes = False

    def insert_if_absent(self, record: RedemptionRecord) -> InsertOutcome:
        if self.fail_writes:
            raise StoreUnavailableError("insert timed out")
        key = (record.session_id, record.student_id)
        with self._lock:
            if key in self._records:
                return InsertOutcome.ALREADY_EXISTS
            self._next_id += 1
            self._records[key] = replace(record, record_id=self._next_id)
            return InsertOutcome.INSERTED

    def get_for_session_and_student(self, session_id: str, student_id: int) -> Optional[RedemptionRecord]:
        return self._records.get((session_id, int(student_id)))

    def has_session(self, session_id: str) -> bool:
        return any(sid == session_id for sid, _ in self._records)

    def all(self) -> list[RedemptionRecord]:
        return list(self._records.values())

    @staticmethod
    def _in_window(r: RedemptionRecord, start, end) -> bool:
        return (start is None or r.recorded_at >= start) and (end is None or r.recorded_at < end)

    def list_for_student(self, student_id, *, start=None, end=None, activity_label=None, limit=100):
        rows = [
            r for r in self._records.values()
            if r.student_id == student_id
            and self._in_window(r, start, end)
            and (activity_label is None or r.activity_label == activity_label)
        ]
        rows.sort(key=lambda r: r.recorded_at, reverse=True)
        return rows[:limit]

    def list_for_activity(self, activity_label, *, start=None, end=None):
        rows = [r for r in self._records.values() if r.activity_label == activity_label and self._in_window(r, start, end)]
        rows.sort(key=lambda r: r.recorded_at, reverse=True)
        return rows


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(jwt_secret="test-jwt-secret", session_jwt_secret="test-session-secret")


@pytest.fixture
def container(users_repo, attendance_repo, auth_settings, clock):
    c = build_services(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        auth=auth_settings,
        clock=clock,
        activity_recorder=ActivityRecorder(users_repo, executor=ImmediateExecutor()),
    )
    yield c
    c.close()


@pytest.fixture
def make_user(users_repo):
    def _make(user_id: int, role: Role, *, password: str = "secret123", **overrides) -> User:
        user = User(
            user_id=user_id,
            full_name=overrides.pop("full_name", f"{role.value.title()} {user_id}"),
            email=overrides.pop("email", f"{role.value}{user_id}@example.com"),
            password_hash=generate_password_hash(password),
            role=role,
            roll_number=overrides.pop("roll_number", f"BCA{user_id:03d}" if role == Role.STUDENT else None),
            **overrides,
        )
        return users_repo.add(user)

    return _make


@pytest.fixture
def teacher(make_user) -> User:
    return make_user(1, Role.TEACHER, full_name="Dr. Rao")


@pytest.fixture
def student(make_user) -> User:
    return make_user(2, Role.STUDENT, full_name="Asha")


@pytest.fixture
def admin(make_user) -> User:
    return make_user(3, Role.ADMIN, full_name="Admin")
