"""
Dexfeed - Configuration
All tunable constants in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# ─────────────────────────────────────────────
# Version
# ─────────────────────────────────────────────
APP_VERSION = "1.0.0"

# ─────────────────────────────────────────────
# Catalog API (PokeAPI)
# ─────────────────────────────────────────────
# Overridable only so a local mock server can stand in during development
API_BASE = os.environ.get("DEXFEED_API_BASE", "https://pokeapi.co/api/v2").rstrip("/")

USER_AGENT = f"Dexfeed/{APP_VERSION}"
REQUEST_TIMEOUT = 10  # seconds per HTTP request

# Official artwork, keyed by numeric id
ARTWORK_URL = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/"
    "pokemon/other/official-artwork/{id}.png"
)

# Categories the API lists that have no members worth browsing
EXCLUDED_CATEGORIES = frozenset({"unknown", "shadow"})

# ─────────────────────────────────────────────
# Pagination & Rate Limiting
# ─────────────────────────────────────────────
PAGE_SIZE = 24            # items per batch
MAX_RETRIES = 2           # extra attempts after an HTTP 429
RATE_LIMIT_BACKOFF = 0.6  # seconds to wait before retrying a 429

# ─────────────────────────────────────────────
# Search Input
# ─────────────────────────────────────────────
SEARCH_DEBOUNCE = 0.4  # seconds of typing silence before the list refreshes

# ─────────────────────────────────────────────
# Status Messages
# ─────────────────────────────────────────────
STATUS_LOADING = "Loading…"
STATUS_UPDATING = "Updating…"
STATUS_SHOWING = "Showing {count} Pokémon"
STATUS_NO_RESULTS = "No results"
STATUS_LOAD_FAILED = "Something went wrong while loading. Try again."
STATUS_START_FAILED = "Could not start the catalog."

# ─────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────
LOG_LEVEL = os.environ.get("DEXFEED_LOG_LEVEL", "INFO").upper()
LOG_FILE = Path(os.path.expanduser("~")) / ".dexfeed" / "dexfeed.log"
