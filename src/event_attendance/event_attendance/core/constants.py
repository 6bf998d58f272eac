"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_CIVIL_TIMEZONE = "Asia/Tokyo"

TICKET_SIGNATURE_LENGTH = 16
TICKET_NONCE_BYTES = 16
PLACEHOLDER_TICKET_PREFIX = "bot-sync-"

SESSION_COOKIE_NAME = "session_token"

RATE_LIMIT_SWEEP_SECONDS = 5 * 60

UNIT_COLOR_PALETTE = (
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#EC4899",
    "#06B6D4",
)

# Keys of the flat system configuration store.
CONFIG_STAFF_ROLE_IDS = "staff_role_ids"
CONFIG_ORGANIZER_ROLE_IDS = "organizer_role_ids"
CONFIG_OPERATIONS_UNIT_ID = "operations_unit_id"
CONFIG_CROSS_UNIT_PROMOTION = "cross_unit_promotion"
