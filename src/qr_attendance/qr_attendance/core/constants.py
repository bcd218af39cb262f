"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_IDENTITY_TOKEN_DAYS = 7
DEFAULT_SESSION_MINUTES = 10
MAX_SESSION_MINUTES = 60
DEFAULT_STORE_TIMEOUT_SECONDS = 5
MAX_INACTIVE_DAYS = 30
MIN_PASSWORD_LENGTH = 6
DEFAULT_HISTORY_LIMIT = 100

JWT_ALGORITHM = "HS256"
CLOCK_SKEW_SECONDS = 30

TOKEN_TYPE_IDENTITY = "identity"
TOKEN_TYPE_SESSION = "attendance_session"
SESSION_ID_PREFIX = "QR"

# Column widths in database/schema.sql
MAX_ACTIVITY_LABEL_LENGTH = 150
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 190
MAX_ROLL_NUMBER_LENGTH = 50
