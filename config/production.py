import os

from .config import Config, DB_CONFIG

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = dict(DB_CONFIG)

JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")
SESSION_JWT_SECRET = Config.SESSION_JWT_SECRET
IDENTITY_TOKEN_DAYS = Config.IDENTITY_TOKEN_DAYS
SESSION_DEFAULT_MINUTES = Config.SESSION_DEFAULT_MINUTES
SESSION_MAX_MINUTES = Config.SESSION_MAX_MINUTES

LOG_LEVEL = Config.LOG_LEVEL
DEBUG = False

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
