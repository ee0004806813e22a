import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "shift_tracker"),
}

# "mysql" or "memory"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mysql")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

INVITE_RETENTION_MINUTES = int(os.getenv("INVITE_RETENTION_MINUTES", str(3 * 24 * 60)))
ALLOW_MANUAL_ON_INACTIVE_AUTO_RULES = bool(int(os.getenv("ALLOW_MANUAL_ON_INACTIVE_AUTO_RULES", "1")))

MONITOR_LATE_THRESHOLD_MINUTES = int(os.getenv("MONITOR_LATE_THRESHOLD_MINUTES", "15"))
MONITOR_EARLY_END_THRESHOLD_MINUTES = int(os.getenv("MONITOR_EARLY_END_THRESHOLD_MINUTES", "15"))
MONITOR_LONG_BREAK_THRESHOLD_MINUTES = int(os.getenv("MONITOR_LONG_BREAK_THRESHOLD_MINUTES", "90"))
MONITOR_NO_BREAK_END_THRESHOLD_MINUTES = int(os.getenv("MONITOR_NO_BREAK_END_THRESHOLD_MINUTES", "90"))
MONITOR_MISSED_SHIFT_THRESHOLD_MINUTES = int(os.getenv("MONITOR_MISSED_SHIFT_THRESHOLD_MINUTES", "60"))
MONITOR_LOOKBACK_HOURS = int(os.getenv("MONITOR_LOOKBACK_HOURS", "24"))

ASYNC_CACHE_INVALIDATION = bool(int(os.getenv("ASYNC_CACHE_INVALIDATION", "0")))

SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "0")))
SCHEDULER_INTERVAL_MINUTES = float(os.getenv("SCHEDULER_INTERVAL_MINUTES", "5"))
