from .config import DB_CONFIG

SECRET_KEY = "test-secret"
DB_CONFIG = dict(DB_CONFIG)

JWT_SECRET = "test-jwt-secret"
SESSION_JWT_SECRET = "test-session-secret"
IDENTITY_TOKEN_DAYS = 7
SESSION_DEFAULT_MINUTES = 10
SESSION_MAX_MINUTES = 60

LOG_LEVEL = "DEBUG"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
