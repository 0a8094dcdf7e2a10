"""
Role constants and the privilege hierarchy.

Every role the platform knows is declared here once. ``ROLE_HIERARCHY`` orders
them from most to least privileged; ``has_role_at_or_above`` is the single
comparison every "X or anything above" rule goes through.
"""

from typing import Iterable, FrozenSet

SYSTEM = "system"
SUPER_ADMIN = "super-admin"
ADMIN = "admin"
STAFF = "staff"
MODERATOR = "moderator"
EDITOR = "editor"
INDUSTRY = "industry"
HOST = "host"
PRO = "pro"
CREATOR = "creator"
DJ = "dj"
VJ = "vj"
CONTRIBUTOR = "contributor"
FREE = "free"

# Highest -> lowest privilege.
ROLE_HIERARCHY = (
    SYSTEM,
    SUPER_ADMIN,
    ADMIN,
    STAFF,
    MODERATOR,
    # mid-tier
    EDITOR,
    INDUSTRY,
    # creator ecosystem
    HOST,
    PRO,
    CREATOR,
    DJ,
    VJ,
    CONTRIBUTOR,
    # baseline
    FREE,
)

ALL_ROLES = frozenset(ROLE_HIERARCHY)

# Worse than the least privileged defined role.
NOT_FOUND = len(ROLE_HIERARCHY)

# ── Groupings ────────────────────────────────────────────────────────
ADMIN_ROLES = frozenset({SYSTEM, SUPER_ADMIN, ADMIN})
STAFF_ROLES = ADMIN_ROLES | {STAFF, MODERATOR, EDITOR}
CREATOR_ROLES = STAFF_ROLES | {HOST, PRO, CREATOR, DJ, VJ, CONTRIBUTOR}
PUBLIC_ROLES = CREATOR_ROLES | {INDUSTRY, FREE}

_INDEX = {role: i for i, role in enumerate(ROLE_HIERARCHY)}


def normalize_roles(raw) -> FrozenSet[str]:
    """Coerce whatever a user record carries in ``roles`` into a set of strings.

    Accepts a single role string, or a list of role strings and/or mappings
    with a ``role`` key. Anything else counts as no roles at all.
    """
    if not raw:
        return frozenset()
    if isinstance(raw, str):
        return frozenset({raw.strip().lower()})
    if not isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset()

    roles = set()
    for item in raw:
        if isinstance(item, dict):
            item = item.get("role")
        if isinstance(item, str) and item.strip():
            roles.add(item.strip().lower())
    return frozenset(roles)


def index_of(role: str) -> int:
    """Position of *role* in the hierarchy, or ``NOT_FOUND``."""
    return _INDEX.get(role, NOT_FOUND)


def _roles_of(principal) -> FrozenSet[str]:
    if principal is None:
        return frozenset()
    return normalize_roles(getattr(principal, "roles", None))


def has_role_at_or_above(principal, required: str) -> bool:
    """True if the principal holds any role at least as privileged as *required*."""
    required_index = index_of(required)
    if required_index == NOT_FOUND:
        return False

    found = [index_of(r) for r in _roles_of(principal)]
    found = [i for i in found if i != NOT_FOUND]
    if not found:
        return False
    return min(found) <= required_index


def has_any_role(principal, allowed: Iterable[str]) -> bool:
    """Plain set membership; no hierarchy, no admin override."""
    return not _roles_of(principal).isdisjoint(allowed)


def is_admin_tier(principal) -> bool:
    return has_any_role(principal, ADMIN_ROLES)


def has_role(principal, allowed: Iterable[str]) -> bool:
    """Admin-tier override first, then membership in *allowed*."""
    if principal is None:
        return False
    if is_admin_tier(principal):
        return True
    return has_any_role(principal, allowed)
