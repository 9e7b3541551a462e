"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_PER_PAGE = 30
MAX_PER_PAGE = 100

# perPage at or above this value returns every row on a single page (mobile list mode)
UNPAGINATED_THRESHOLD = 1000
UNPAGINATED_LIMIT = 2000

DEVICE_ONLINE_MINUTES = 5
INACTIVE_DEVICE_RETENTION_DAYS = 30

MIN_PASSWORD_LENGTH = 8
MAX_INSPECTION_DETAILS = 1000
MAX_LOCATION_KM = 48

DEFAULT_PUNCH_IN = "09:00"
DEFAULT_PRESENT_REASON = "Marked present by administrator"

ALLOWED_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp"})
DEFAULT_MAX_IMAGE_BYTES = 2 * 1024 * 1024
