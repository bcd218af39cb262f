"""Settings shared by every environment; environment modules override them."""

import os


def _int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = _int("DB_PORT", 3306)
    DB_NAME = os.environ.get("DB_NAME", "qr_attendance")

    # Identity credentials; attendance-session credentials fall back to JWT_SECRET
    JWT_SECRET = os.environ.get("JWT_SECRET", "your_jwt_secret_key_for_development")
    SESSION_JWT_SECRET = os.environ.get("SESSION_JWT_SECRET") or None
    IDENTITY_TOKEN_DAYS = _int("IDENTITY_TOKEN_DAYS", 7)
    SESSION_DEFAULT_MINUTES = _int("SESSION_DEFAULT_MINUTES", 10)
    SESSION_MAX_MINUTES = _int("SESSION_MAX_MINUTES", 60)
    STORE_TIMEOUT_SECONDS = _int("STORE_TIMEOUT_SECONDS", 5)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))


DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
    "timeout_seconds": Config.STORE_TIMEOUT_SECONDS,
}
