import os

from config import capability_overrides_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "campus_calendar"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Concurrent source reads for one calendar request
CALENDAR_FETCH_WORKERS = int(os.getenv("CALENDAR_FETCH_WORKERS", "4"))
CALENDAR_FETCH_TIMEOUT = float(os.getenv("CALENDAR_FETCH_TIMEOUT", "10"))

CAPABILITY_OVERRIDES = capability_overrides_from_env()
