"""MoneyTracker constants and thresholds.

All magic numbers live here. No exceptions.
"""

# Local storage keys
PENDING_MUTATIONS_KEY = "moneytracker_pending_transactions"
CACHED_DATA_KEY = "moneytracker_cached_data"
BILL_REMINDERS_KEY = "billReminders"

# Sync
SYNC_INTERVAL_SECONDS = 30
TEMP_ID_PREFIX = "temp_"
TEMP_ID_SUFFIX_LENGTH = 9

# Cache
CACHE_MAX_ENTRIES = 100

# Budget alerts (percent of limit)
BUDGET_ALERT_THRESHOLD_PCT = 80
BUDGET_ALERT_BUCKET_PCT = 10
OVER_BUDGET_PCT = 100

# Bill reminders (days)
BILL_REMINDER_DEFAULT_DAYS = 3
BILL_UPCOMING_WINDOW_DAYS = 7

# Remote store
REMOTE_TIMEOUT_SECONDS = 10
REMOTE_REST_PATH = "/rest/v1"
