from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import as_utc
from ..core.enums import AttendanceStatus, InsertOutcome
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import RedemptionRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, session_id, student_id, student_name, roll_number,
    activity_label, marked_by, recorded_at, status
"""


def _naive_utc(value: datetime) -> datetime:
    return as_utc(value).replace(tzinfo=None)


def _row_to_record(r: dict) -> RedemptionRecord:
    return RedemptionRecord(
        record_id=int(r["attendance_id"]),
        session_id=r["session_id"],
        student_id=int(r["student_id"]),
        student_name=r["student_name"],
        roll_number=r.get("roll_number"),
        activity_label=r["activity_label"],
        marked_by=int(r["marked_by"]),
        recorded_at=as_utc(r["recorded_at"]),
        status=AttendanceStatus(r["status"]),
    )


def _time_window(clauses: list[str], params: list[object], start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is not None:
        clauses.append("recorded_at >= %s")
        params.append(_naive_utc(start))
    if end is not None:
        clauses.append("recorded_at < %s")
        params.append(_naive_utc(end))


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_if_absent(self, record: RedemptionRecord) -> InsertOutcome:
        # UNIQUE KEY uq_attendance_session_student(session_id, student_id) makes
        # this single INSERT the whole check-and-write.
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        session_id, student_id, student_name, roll_number,
                        activity_label, marked_by, recorded_at, status
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.session_id,
                        int(record.student_id),
                        record.student_name,
                        record.roll_number,
                        record.activity_label,
                        int(record.marked_by),
                        _naive_utc(record.recorded_at),
                        record.status.value,
                    ),
                )
            return InsertOutcome.INSERTED
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                return InsertOutcome.ALREADY_EXISTS
            raise

    def get_for_session_and_student(self, session_id: str, student_id: int) -> Optional[RedemptionRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE session_id=%s AND student_id=%s
                """,
                (session_id, int(student_id)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def has_session(self, session_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS found FROM attendance_records WHERE session_id=%s LIMIT 1", (session_id,))
            return fetchone(cur) is not None

    def list_for_student(
        self,
        student_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        activity_label: Optional[str] = None,
        limit: int = 100,
    ) -> Sequence[RedemptionRecord]:
        clauses = ["student_id=%s"]
        params: list[object] = [int(student_id)]
        _time_window(clauses, params, start, end)
        if activity_label:
            clauses.append("activity_label=%s")
            params.append(activity_label)
        params.append(int(limit))

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY recorded_at DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_activity(
        self,
        activity_label: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[RedemptionRecord]:
        clauses = ["activity_label=%s"]
        params: list[object] = [activity_label]
        _time_window(clauses, params, start, end)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {where}
                ORDER BY recorded_at DESC
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
