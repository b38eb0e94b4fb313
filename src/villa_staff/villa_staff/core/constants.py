"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

VIOLATION_WINDOW_DAYS = 7
VIOLATION_REPEAT_THRESHOLD = 2
VIOLATION_MULTIPLIER = 2
BASE_MULTIPLIER = 1

CUSTOM_RULE_ID = "custom"
CUSTOM_POINTS_REASON = "Individuelle Punktevergabe"

DEFAULT_LANGUAGE = "de"
DEFAULT_TASK_DURATION = 30
DEFAULT_TASK_POINTS = 10

LOCAL_KEY_PREFIX = "villa_sun_"

COLLECTION_USERS = "users"
COLLECTION_POINT_RULES = "point_rules"
COLLECTION_POINT_ENTRIES = "point_entries"
COLLECTION_TASKS = "tasks"
COLLECTION_VIOLATIONS = "user_violations"

MAX_CART_QUANTITY = 50
