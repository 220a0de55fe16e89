"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_PENDING_LIMIT = 500
DEFAULT_TOP_VOLUNTEERS = 5
MIN_PASSWORD_LENGTH = 6

MINUTES_PER_HOUR = 60
SECONDS_PER_MINUTE = 60

MANUAL_LOG_DESCRIPTION = "Manually logged hours"
CHECKOUT_NOTES_PREFIX = "Check-out notes: "
