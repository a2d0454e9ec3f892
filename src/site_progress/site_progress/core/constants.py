"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import Method

METHODS = tuple(Method)

DAILY_PROGRESS_DEFAULT_LIMIT = 20
DAILY_PROGRESS_MAX_LIMIT = 100

PROJECT_DEFAULT_LIMIT = 10
PROJECT_MAX_LIMIT = 50

CONFIRM_CLEAR = "clear"
AUTHOR_ME = "me"
