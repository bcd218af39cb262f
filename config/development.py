import os

from .config import Config, DB_CONFIG

SECRET_KEY = Config.SECRET_KEY
DB_CONFIG = dict(DB_CONFIG)

JWT_SECRET = Config.JWT_SECRET
SESSION_JWT_SECRET = Config.SESSION_JWT_SECRET
IDENTITY_TOKEN_DAYS = Config.IDENTITY_TOKEN_DAYS
SESSION_DEFAULT_MINUTES = Config.SESSION_DEFAULT_MINUTES
SESSION_MAX_MINUTES = Config.SESSION_MAX_MINUTES

LOG_LEVEL = "DEBUG"
DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo accounts on startup
AUTO_SEED_DB = Config.AUTO_SEED_DB
