"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = int(os.getenv("TOKEN_EXPIRY_HOURS", "24"))

# ── Public read channel (x-api-key + x-fetch-code headers) ───────────
# Leaving either value unset disables the channel entirely.
CMS_PUBLIC_API_KEY = os.getenv("CMS_PUBLIC_API_KEY", "")
PUBLIC_FETCH_CODE = os.getenv("PUBLIC_FETCH_CODE", "")

# ── Document lookups ─────────────────────────────────────────────────
# Collection slug -> table. Only these tables can be read by delegation lookups.
LOOKUP_TABLES = {
    "groups": "groups",
    "group-posts": "group_posts",
    "group-messages": "group_messages",
    "group-events": "group_events",
    "media": "media",
}

# Columns holding lists of profile/user ids, stored as JSON text.
ID_LIST_COLUMNS = {"admins", "moderators", "members"}


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
