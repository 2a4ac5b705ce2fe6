"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MONTH_GRID_WEEKS = 6
DAYS_PER_WEEK = 7
MONTH_GRID_DAYS = MONTH_GRID_WEEKS * DAYS_PER_WEEK
HOURS_PER_DAY = 24
YEAR_PREVIEW_LIMIT = 3

HOLIDAY_COLOR = "red"
ACADEMIC_EVENT_COLOR = "blue"
SCHEDULE_COLOR = "green"

DEFAULT_FETCH_WORKERS = 4
DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0
DEFAULT_PATTERN_PAGE_SIZE = 50
MAX_PATTERN_PAGE_SIZE = 200

HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

OCCURRENCE_CACHE_MAX_ENTRIES = 512
