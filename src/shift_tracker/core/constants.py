"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

RATING_MAX = Decimal("100")
RATING_MIN = Decimal("0")
RATING_TERMINATED_AT = Decimal("30")
RATING_WARNING_AT = Decimal("50")
MAX_MANUAL_DELTA = Decimal("100")
PENALTY_MIN = Decimal("0")
PENALTY_MAX = Decimal("100")

INVITE_CODE_BYTES = 16
INVITE_CODE_ATTEMPTS = 5
DEFAULT_INVITE_RETENTION_MINUTES = 3 * 24 * 60

DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_EARLY_END_THRESHOLD_MINUTES = 15
DEFAULT_LONG_BREAK_THRESHOLD_MINUTES = 90
DEFAULT_NO_BREAK_END_THRESHOLD_MINUTES = 90
DEFAULT_MISSED_SHIFT_THRESHOLD_MINUTES = 60
DEFAULT_MONITOR_LOOKBACK_HOURS = 24
DEFAULT_SCHEDULER_INTERVAL_MINUTES = 5
