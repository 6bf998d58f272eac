import os

# Secrets have no defaults here; create_app refuses to start without them.
SECRET_KEY = os.getenv("SECRET_KEY", "")
TICKET_SECRET = os.getenv("TICKET_SECRET", "")
SESSION_SECRET = os.getenv("SESSION_SECRET", "")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "event_attendance"),
}

CIVIL_TIMEZONE = os.getenv("CIVIL_TIMEZONE", "Asia/Tokyo")
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
SESSION_COOKIE_SECURE = True

LEGACY_TOKENS_UNTIL = os.getenv("LEGACY_TOKENS_UNTIL", "")

EXPORT_API_KEY = os.getenv("EXPORT_API_KEY", "")
STRICT_ROLE_CONFIG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
