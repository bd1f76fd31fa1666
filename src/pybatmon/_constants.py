"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Capacity calibration policy
# ------------------------------------------------------------------

MIN_SAMPLES = 5
MAX_SAMPLES = 50
CALIBRATION_MIN_PERCENT = 15
CALIBRATION_MAX_PERCENT = 95
MAX_DEVIATION_PERCENT = 2.0
SAMPLE_RETENTION_MS = 7 * 24 * 60 * 60 * 1000  # 7 days
MIN_SAMPLE_INTERVAL_MS = 5 * 60 * 1000  # 5 minutes

# Exponential smoothing of the real-time estimate (old, implied).
SMOOTHING_OLD_WEIGHT = 0.75
SMOOTHING_NEW_WEIGHT = 0.25

# Historical (median) validation of the real-time estimate.
MEDIAN_DEVIATION_TRIGGER = 0.10
MEDIAN_BLEND_REALTIME_WEIGHT = 0.7
MEDIAN_BLEND_MEDIAN_WEIGHT = 0.3

# ------------------------------------------------------------------
# Telemetry stores
# ------------------------------------------------------------------

MAX_DATA_POINTS = 10_000
MAX_STATUS_ENTRIES = 10_000
MAX_LOG_ENTRIES = 40
COARSE_DEDUP_WINDOW_MS = 10 * 1000

MS_PER_HOUR = 60 * 60 * 1000

#: Status name used for the "device unlocked / screen on" interval.
STATUS_USER_PRESENT = "user_present"

# ------------------------------------------------------------------
# Persistence keys
# ------------------------------------------------------------------

KEY_CAPACITY_SAMPLES = "capacity_samples"
KEY_SMOOTHED_CAPACITY = "smoothed_capacity"
KEY_LAST_SYSTEM_PERCENT = "last_system_percent"
KEY_BATTERY_DATA = "battery_data"
KEY_PRECISE_BATTERY_DATA = "precise_battery_data"
KEY_STATUS_DATA = "status_data"
KEY_EVENT_LOG = "event_log"

#: Numeric sentinel written for "unset" calibration values.
UNSET_SENTINEL = -1
