#!/usr/bin/env python3
"""
Generate API keys for portal users.
Creates secure random API keys that can be inserted into the portal_users table.
"""

import secrets
import string

from cms_access import roles as R


def generate_api_key(prefix="cms", length=32):
    """Generate a secure random API key."""
    chars = string.ascii_letters + string.digits
    random_part = "".join(secrets.choice(chars) for _ in range(length))
    return f"{prefix}_{random_part}"


def insert_statement(display_name, roles, profile_id=None):
    """SQL that creates an active portal user holding *roles*."""
    unknown = set(roles) - R.ALL_ROLES
    if unknown:
        raise ValueError(f"Unknown roles: {sorted(unknown)}")
    profile = "NULL" if profile_id is None else f"'{profile_id}'"
    return f"""
INSERT INTO portal_users
    (display_name, roles, profile_id, api_key, is_active)
VALUES
    ('{display_name}', '{",".join(roles)}', {profile}, '{generate_api_key()}', 1);
"""


if __name__ == "__main__":
    print("=" * 70)
    print("CMS Access API Key Generator")
    print("=" * 70)
    print()

    print("Single API Key:")
    print("-" * 70)
    print(f"  {generate_api_key()}")
    print()

    print("=" * 70)
    print("SQL Insert Examples:")
    print("=" * 70)

    print("\n-- For an Admin:")
    print(insert_statement("Platform Admin", [R.ADMIN]))

    print("-- For Editorial Staff:")
    print(insert_statement("Newsroom Staff", [R.STAFF, R.EDITOR], profile_id="p-100"))

    print("-- For a Creator:")
    print(insert_statement("DJ Wave", [R.CREATOR, R.DJ], profile_id="p-200"))

    print("=" * 70)
    print("Note: Run these SQL statements in your database to create users.")
    print("=" * 70)
