import os

from .config import *  # noqa: F401,F403

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
}

DEBUG = False
TESTING = True

SCHEDULER_ENABLED = False
AUTO_INIT_DB = False
TRIGGER_TOKEN = ""
BATCH_DELAY_SECONDS = 0.0
