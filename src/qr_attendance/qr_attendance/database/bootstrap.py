from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DBConfig

logger = logging.getLogger(__name__)


def _as_config(db_config: dict) -> DBConfig:
    return DBConfig(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "qr_attendance")),
    )


def _connect(config: DBConfig, *, with_database: bool = True):
    kwargs = dict(host=config.host, port=config.port, user=config.user, password=config.password, use_pure=True)
    if with_database:
        kwargs["database"] = config.database
    return mysql.connector.connect(**kwargs)


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # schema files keep one statement per ';'-terminated block and no ';' in literals
    without_comments = re.sub(r"(?m)^\s*--.*$", "", sql)
    for stmt in without_comments.split(";"):
        stmt = stmt.strip()
        if stmt:
            yield stmt


def ensure_database_exists(db_config: dict) -> None:
    config = _as_config(db_config)
    conn = _connect(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = Path(schema_path).read_text(encoding="utf-8")

    conn = _connect(_as_config(db_config))
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info("Schema applied from %s", schema_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create (or reset) one account per role for local testing."""
    demo_accounts = [
        ("Admin Demo", "admin@example.com", "admin123", Role.ADMIN, None),
        ("Teacher Demo", "teacher@example.com", "teacher123", Role.TEACHER, None),
        ("Student Demo", "student@example.com", "student123", Role.STUDENT, "BCA001"),
    ]

    conn = _connect(_as_config(db_config))
    try:
        cur = conn.cursor()
        for full_name, email, password, role, roll_number in demo_accounts:
            cur.execute(
                """
                INSERT INTO users (full_name, email, password_hash, role, roll_number, is_active)
                VALUES (%s, %s, %s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE
                    full_name=VALUES(full_name), password_hash=VALUES(password_hash),
                    role=VALUES(role), is_active=1
                """,
                (full_name, email, generate_password_hash(password), role.value, roll_number),
            )
        conn.commit()
    finally:
        conn.close()
    logger.info("Demo accounts ready: %s", ", ".join(a[1] for a in demo_accounts))


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(_as_config(db_config))
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
