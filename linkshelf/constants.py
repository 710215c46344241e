"""
Constants for Linkshelf.

These constants are used by various modules for sensible defaults.
Some are also available via the config system.
"""

# Categories are UI-only labels kept in the metadata side-table
CATEGORIES = ("General", "Work", "Study", "Fun", "Read Later")
DEFAULT_CATEGORY = "General"
ALL_CATEGORIES = "All"  # Filter sentinel, never stored as a category

# Identity
UNSAVED_ID = 0

# Subscriptions
DEFAULT_GRACE_PERIOD = 5.0  # Seconds the store feed stays live with no subscribers

# Undo
RESTORE_HISTORY = 20  # Deleted bookmarks whose metadata is remembered for restore

# Limits
MAX_TITLE_LENGTH = 512
MAX_URL_LENGTH = 2048

# Display limits
DISPLAY_TITLE_WIDTH = 50
