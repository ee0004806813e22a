import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_tracker_test"),
}

# Tests run against the in-memory repositories unless told otherwise.
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = False

INVITE_RETENTION_MINUTES = 3 * 24 * 60
ALLOW_MANUAL_ON_INACTIVE_AUTO_RULES = True

MONITOR_LATE_THRESHOLD_MINUTES = 15
MONITOR_EARLY_END_THRESHOLD_MINUTES = 15
MONITOR_LONG_BREAK_THRESHOLD_MINUTES = 90
MONITOR_NO_BREAK_END_THRESHOLD_MINUTES = 90
MONITOR_MISSED_SHIFT_THRESHOLD_MINUTES = 60
MONITOR_LOOKBACK_HOURS = 24

ASYNC_CACHE_INVALIDATION = False

# Tests drive MaintenanceScheduler.run_once directly.
SCHEDULER_ENABLED = False
SCHEDULER_INTERVAL_MINUTES = 5
