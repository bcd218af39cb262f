from __future__ import annotations

from datetime import datetime
from typing import Optional

import mysql.connector

from ..common.datetime_utils import as_utc
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, is_duplicate_key
from .model import User
from .repository import UserRepository

_USER_COLUMNS = """
    user_id, full_name, email, password_hash, role, roll_number, is_active,
    password_changed_at, last_login, last_activity
"""


def _naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def _opt_utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        roll_number=row.get("roll_number"),
        is_active=bool(row.get("is_active", True)),
        password_changed_at=_opt_utc(row.get("password_changed_at")),
        last_login=_opt_utc(row.get("last_login")),
        last_activity=_opt_utc(row.get("last_activity")),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email.lower())

    def get_by_roll_number(self, roll_number: str) -> Optional[User]:
        return self._get_one("roll_number", roll_number)

    def create_user(
        self,
        *,
        full_name: str,
        email: str,
        password_hash: str,
        role: Role,
        roll_number: Optional[str] = None,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO users(full_name, email, password_hash, role, roll_number, is_active)
                    VALUES(%s,%s,%s,%s,%s,1)
                    """,
                    (full_name, email.lower(), password_hash, role.value, roll_number),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                return None
            raise

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET is_active=%s WHERE user_id=%s",
                (1 if is_active else 0, int(user_id)),
            )
            return cur.rowcount > 0

    def update_password(self, user_id: int, *, password_hash: str, changed_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE users
                SET password_hash=%s, password_changed_at=%s
                WHERE user_id=%s
                """,
                (password_hash, _naive_utc(changed_at), int(user_id)),
            )
            return cur.rowcount > 0

    def touch_last_login(self, user_id: int, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_login=%s WHERE user_id=%s", (_naive_utc(at), int(user_id)))

    def touch_last_activity(self, user_id: int, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET last_activity=%s WHERE user_id=%s", (_naive_utc(at), int(user_id)))
