"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_WINDOW_MINUTES = 15
DEFAULT_LATE_THRESHOLD_MINUTES = 15
TOKEN_NBYTES = 32
QR_PAYLOAD_TYPE = "attendance"
