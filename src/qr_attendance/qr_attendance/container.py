from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceReportService, RedemptionEngine
from .common.datetime_utils import Clock, utc_now
from .common.token_codec import TokenCodec
from .core.constants import (
    DEFAULT_IDENTITY_TOKEN_DAYS,
    DEFAULT_SESSION_MINUTES,
    DEFAULT_STORE_TIMEOUT_SECONDS,
    MAX_SESSION_MINUTES,
)
from .database.connection import DatabaseConnection, DBConfig
from .identity.activity import ActivityRecorder
from .identity.credentials import IdentityCredentialIssuer
from .identity.verifier import IdentityVerifier
from .sessions.issuer import SessionIssuer
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class AuthSettings:
    jwt_secret: str
    session_jwt_secret: Optional[str] = None
    identity_token_days: int = DEFAULT_IDENTITY_TOKEN_DAYS
    session_default_minutes: int = DEFAULT_SESSION_MINUTES
    session_max_minutes: int = MAX_SESSION_MINUTES

    @property
    def effective_session_secret(self) -> str:
        return self.session_jwt_secret or self.jwt_secret


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    attendance_repo: AttendanceRepository

    activity_recorder: ActivityRecorder
    identity_verifier: IdentityVerifier
    session_issuer: SessionIssuer
    redemption_engine: RedemptionEngine
    report_service: AttendanceReportService
    auth_service: AuthService
    user_service: UserService

    def close(self) -> None:
        self.activity_recorder.shutdown(wait=True)


def build_services(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    auth: AuthSettings,
    clock: Clock = utc_now,
    conn: Optional[DatabaseConnection] = None,
    activity_recorder: Optional[ActivityRecorder] = None,
) -> Container:
    identity_codec = TokenCodec(auth.jwt_secret)
    session_codec = TokenCodec(auth.effective_session_secret)

    activity_recorder = activity_recorder or ActivityRecorder(users_repo)
    credentials = IdentityCredentialIssuer(
        identity_codec, lifetime=timedelta(days=auth.identity_token_days), clock=clock
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        activity_recorder=activity_recorder,
        identity_verifier=IdentityVerifier(users_repo, identity_codec, clock=clock, activity=activity_recorder),
        session_issuer=SessionIssuer(
            session_codec,
            records=attendance_repo,
            clock=clock,
            default_minutes=auth.session_default_minutes,
            max_minutes=auth.session_max_minutes,
        ),
        redemption_engine=RedemptionEngine(attendance_repo, session_codec, clock=clock),
        report_service=AttendanceReportService(attendance_repo),
        auth_service=AuthService(users_repo, credentials, clock=clock),
        user_service=UserService(users_repo, credentials, clock=clock),
    )


def build_container(*, db_config: dict, auth: AuthSettings) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        timeout_seconds=int(db_config.get("timeout_seconds", DEFAULT_STORE_TIMEOUT_SECONDS)),
    )
    conn = DatabaseConnection(config)

    return build_services(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        auth=auth,
        conn=conn,
    )
