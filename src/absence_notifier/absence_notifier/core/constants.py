"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_INTERVAL_SECONDS = 3600
# datetime.weekday(): Monday=0 ... Sunday=6
DEFAULT_OFF_DAYS = (6,)

DEFAULT_ROSTER_PAGE_SIZE = 500
DEFAULT_BATCH_CHUNK_SIZE = 20
DEFAULT_BATCH_DELAY_SECONDS = 0.1
DEFAULT_SEND_TIMEOUT_SECONDS = 30.0

DEFAULT_COUNTRY_CODE = "91"
DEFAULT_KNOWN_COUNTRY_CODES = ("1", "44", "91", "92")
LOCAL_NUMBER_DIGITS = 10

DEFAULT_GRACE_PERIOD_HOURS = 2
DEFAULT_SCHOOL_START = "09:00:00"
DEFAULT_CHECK_TIME = "11:00:00"
