from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_setup import configure_logging
from .container import AuthSettings, Container, build_container
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .sessions.controller import register as register_sessions
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def auth_settings_from(settings) -> AuthSettings:
    return AuthSettings(
        jwt_secret=getattr(settings, "JWT_SECRET"),
        session_jwt_secret=getattr(settings, "SESSION_JWT_SECRET", None),
        identity_token_days=int(getattr(settings, "IDENTITY_TOKEN_DAYS", 7)),
        session_default_minutes=int(getattr(settings, "SESSION_DEFAULT_MINUTES", 10)),
        session_max_minutes=int(getattr(settings, "SESSION_MAX_MINUTES", 60)),
    )


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app; tests pass a container wired to in-memory stores."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module, db_config.get("user"), db_config.get("host"),
            db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)

        container = build_container(db_config=db_config, auth=auth_settings_from(settings))

    app.extensions["qr_attendance"] = container

    register_users(app, container)
    register_sessions(app, container)
    register_attendance(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "OK"})

    @app.errorhandler(404)
    def not_found(_):
        return jsonify({"success": False, "code": "NOT_FOUND", "message": "Route not found"}), 404

    @app.errorhandler(500)
    def internal_error(e):
        logger.error("Unhandled error: %s", e)
        return jsonify({"success": False, "code": "INTERNAL", "message": "Internal server error"}), 500

    return app
