import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# Token signing secrets. Development falls back to fixed values so a fresh checkout runs.
TICKET_SECRET = os.getenv("TICKET_SECRET", "dev-ticket-secret")
SESSION_SECRET = os.getenv("SESSION_SECRET", "dev-session-secret")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "event_attendance"),
}

CIVIL_TIMEZONE = os.getenv("CIVIL_TIMEZONE", "Asia/Tokyo")
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
SESSION_COOKIE_SECURE = False

# ISO datetime until which unsigned legacy tokens are still honoured. Empty disables them.
LEGACY_TOKENS_UNTIL = os.getenv("LEGACY_TOKENS_UNTIL", "")

EXPORT_API_KEY = os.getenv("EXPORT_API_KEY", "")
STRICT_ROLE_CONFIG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
