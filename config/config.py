"""Settings shared by every environment.

Each environment module star-imports this one and overrides what differs.
Values come from the process environment (``.env`` is loaded by ``create_app``).
"""
import os


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def env_int_list(name: str, default: tuple) -> tuple:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(int(part) for part in raw.split(",") if part.strip())


def env_str_list(name: str, default: tuple) -> tuple:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(part.strip().lstrip("+") for part in raw.split(",") if part.strip())


DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance"),
}

# Scheduler
SCHEDULER_ENABLED = env_bool("SCHEDULER_ENABLED", True)
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "Asia/Kolkata")
SCHEDULER_INTERVAL_SECONDS = int(os.getenv("SCHEDULER_INTERVAL_SECONDS", "3600"))
# Python weekday numbers, Monday=0 .. Sunday=6
SCHEDULER_OFF_DAYS = env_int_list("SCHEDULER_OFF_DAYS", (6,))
TENANT_WORKERS = int(os.getenv("TENANT_WORKERS", "1"))

# Detector / batch sending
ROSTER_PAGE_SIZE = int(os.getenv("ROSTER_PAGE_SIZE", "500"))
BATCH_CHUNK_SIZE = int(os.getenv("BATCH_CHUNK_SIZE", "20"))
BATCH_DELAY_SECONDS = float(os.getenv("BATCH_DELAY_SECONDS", "0.1"))
SEND_TIMEOUT_SECONDS = float(os.getenv("SEND_TIMEOUT_SECONDS", "30"))
NOTIFY_IN_BATCHES = env_bool("NOTIFY_IN_BATCHES", False)

# Phone numbers
DEFAULT_COUNTRY_CODE = os.getenv("DEFAULT_COUNTRY_CODE", "91").lstrip("+")
KNOWN_COUNTRY_CODES = env_str_list("KNOWN_COUNTRY_CODES", ("1", "44", "91", "92"))

# WhatsApp (YCloud)
YCLOUD_API_KEY = os.getenv("YCLOUD_API_KEY", "")
YCLOUD_BASE_URL = os.getenv("YCLOUD_BASE_URL", "https://api.ycloud.com/v2")
YCLOUD_FROM_NUMBER = os.getenv("YCLOUD_FROM_NUMBER", "")
# Pre-approved templates per status; WHATSAPP_TEMPLATE_NAME, when set, is used for every status.
WHATSAPP_USE_TEMPLATES = env_bool("WHATSAPP_USE_TEMPLATES", True)
WHATSAPP_TEMPLATE_NAME = os.getenv("WHATSAPP_TEMPLATE_NAME", "")
WHATSAPP_TEMPLATE_PRESENT = os.getenv("WHATSAPP_TEMPLATE_PRESENT", "attendance_present")
WHATSAPP_TEMPLATE_LATE = os.getenv("WHATSAPP_TEMPLATE_LATE", "attendance_late")
WHATSAPP_TEMPLATE_ABSENT = os.getenv("WHATSAPP_TEMPLATE_ABSENT", "attendance_absent")
WHATSAPP_TEMPLATE_LEAVE = os.getenv("WHATSAPP_TEMPLATE_LEAVE", "attendance_leave")
WHATSAPP_TEMPLATE_LANGUAGE = os.getenv("WHATSAPP_TEMPLATE_LANGUAGE", "en")
# Honour schools.whatsapp_use_own_key / whatsapp_api_key
WHATSAPP_TENANT_KEYS = env_bool("WHATSAPP_TENANT_KEYS", True)

# SMS fallback (Twilio)
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER", "")

TRIGGER_TOKEN = os.getenv("TRIGGER_TOKEN", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = env_bool("LOG_JSON", False)

AUTO_INIT_DB = env_bool("AUTO_INIT_DB", False)
DEBUG = False
TESTING = False
