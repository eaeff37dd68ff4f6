"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_AUTO_CLOSE = True
DEFAULT_SESSION_DURATION_MINUTES = 15
DEFAULT_ALLOW_LATE = True
DEFAULT_LATE_THRESHOLD_MINUTES = 10

DEFAULT_QR_NAMESPACE = "classattend"
QR_TOKEN_BYTES = 32

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_SESSION_RANGE_DAYS = 30
