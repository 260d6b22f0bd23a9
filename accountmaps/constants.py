"""Application-wide constants."""

APP_NAME = "Account Maps"
APP_VERSION = "0.1.0"

# Database
DB_FILENAME = "accounts.sqlite"
DB_BUSY_TIMEOUT_S = 5.0

# Listing defaults
DEFAULT_ACCOUNT_LIST_LIMIT = 250

# Presentation limits (select menus, option labels)
SELECT_MENU_MAX_OPTIONS = 25
OPTION_LABEL_MAX_LENGTH = 100

# Password masking
MASK_CHAR = "•"  # bullet
MASK_MIN_LENGTH = 6
MASK_MAX_LENGTH = 10
EMPTY_PLACEHOLDER = "—"  # em dash
ELLIPSIS = "…"

# Credential pair format
PAIR_SEPARATOR = ":"
PAIR_FORMAT_HINT = "Use format USERNAME_OR_EMAIL:PASSWORD"
