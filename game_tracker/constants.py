APP_NAME = "Game-Tracker"
APP_AUTHOR = "GameTracker"
LOGGER_NAME = "GameTracker"

# Directory name tags, i.e. "My Game [v.1.2.3] [MOD]"
VERSION_MARKER = "[V."
MOD_TAG = "[MOD]"
UNKNOWN_VERSION = "Unknown"

# Characters that cannot appear in a directory name on at least one platform
FILESYSTEM_SPECIAL_CHARS = '/\\?%*:|"<>'

# Above this number of duplicates a single aggregate notice is sent
DEFAULT_MAX_ITEMIZED_DUPLICATES = 5

DEFAULT_CATALOG_URL = "http://127.0.0.1:8421/api"
DEFAULT_CATALOG_TIMEOUT = 30
DEFAULT_POOL_SIZE = 3

# Fields of ThreadRecord/GameRecord that can be used in store filters
THREAD_FILTER_FIELDS = {
    "internal_id": "id",
    "remote_id": "remote_id",
    "url": "url",
    "name": "name",
    "update_available": "update_available",
    "marked_as_read": "marked_as_read",
}

GAME_FILTER_FIELDS = {
    "id": "id",
    "remote_id": "remote_id",
    "name": "name",
    "version": "version",
    "game_directory": "game_directory",
    "mod": "mod",
}

# Remote ids are stored as SQLite INTEGER (signed 64-bit)
MAX_REMOTE_ID = 2**63 - 1
