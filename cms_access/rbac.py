"""
Loading the acting principal for an API key.
"""

from sqlalchemy import text

from cms_access.models import Principal
from cms_access.roles import ALL_ROLES, normalize_roles


def load_principal(engine, api_key: str) -> Principal:
    """Look up a user by API key and return their Principal."""
    sql = text("""
        SELECT id, display_name, roles, profile_id
        FROM portal_users
        WHERE api_key = :k AND is_active = 1
    """)
    with engine.connect() as conn:
        row = conn.execute(sql, {"k": api_key}).mappings().first()

    if not row:
        raise ValueError("Invalid key or user inactive (no match in portal_users).")

    # roles are stored comma-separated, e.g. "creator,dj"
    raw = row["roles"] or ""
    roles = normalize_roles(str(raw).split(","))
    unknown = roles - ALL_ROLES
    if unknown:
        print(f"[auth] Ignoring unknown roles for user {row['id']}: {sorted(unknown)}")

    return Principal(
        id=str(row["id"]),
        roles=roles & ALL_ROLES,
        profile_id=str(row["profile_id"]) if row["profile_id"] is not None else None,
        display_name=str(row["display_name"]),
    )
