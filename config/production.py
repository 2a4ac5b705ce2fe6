import os

from config import capability_overrides_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "campus_calendar"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

CALENDAR_FETCH_WORKERS = int(os.getenv("CALENDAR_FETCH_WORKERS", "8"))
CALENDAR_FETCH_TIMEOUT = float(os.getenv("CALENDAR_FETCH_TIMEOUT", "5"))

CAPABILITY_OVERRIDES = capability_overrides_from_env()
