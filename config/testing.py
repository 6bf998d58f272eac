import os

SECRET_KEY = "test-secret"
TICKET_SECRET = "test-ticket-secret"
SESSION_SECRET = "test-session-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "event_attendance_test"),
}

CIVIL_TIMEZONE = "Asia/Tokyo"
SESSION_DAYS = 7
SESSION_COOKIE_SECURE = False
LEGACY_TOKENS_UNTIL = ""

EXPORT_API_KEY = "test-export-key"
STRICT_ROLE_CONFIG = False

LOG_LEVEL = "WARNING"
DEBUG = False
TESTING = True

AUTO_INIT_DB = False
