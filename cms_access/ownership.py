"""
Ownership checks and the self-or-role combinator.
"""

from typing import Optional

from cms_access import roles as R
from cms_access.models import Equals, normalize_id
from cms_access.resolution import evaluate


def owner_matches(principal, owner_ref, by_profile: bool = False) -> bool:
    """Compare an owner reference (raw id or expanded object) with the principal."""
    if principal is None:
        return False
    owner_id = normalize_id(owner_ref)
    if owner_id is None:
        return False
    mine: Optional[str] = principal.profile_id if by_profile else principal.id
    return mine is not None and owner_id == mine


def acts_as(principal, ref) -> bool:
    """The reference names the principal by either its user id or its profile id."""
    if principal is None:
        return False
    ref_id = normalize_id(ref)
    return ref_id is not None and ref_id in principal.identities()


def is_owner(field: str, by_profile: bool = False, any_identity: bool = False):
    """Principal owns the loaded document through *field*."""
    def owner(ctx) -> bool:
        if ctx.principal is None or not ctx.doc:
            return False
        if any_identity:
            return acts_as(ctx.principal, ctx.doc.get(field))
        return owner_matches(ctx.principal, ctx.doc.get(field), by_profile)

    owner.__name__ = f"is_owner({field})"
    return owner


def is_participant(*fields: str, by_profile: bool = False):
    """Principal owns any one of *fields* (e.g. either side of a block)."""
    checks = [is_owner(f, by_profile) for f in fields]

    def participant(ctx) -> bool:
        return any(check(ctx) for check in checks)

    participant.__name__ = "is_participant(" + ",".join(fields) + ")"
    return participant


def is_self(ctx) -> bool:
    """The target document is the principal's own user record."""
    return owner_matches(ctx.principal, ctx.doc_id)


def is_self_profile(ctx) -> bool:
    """The target document is the principal's linked profile."""
    return owner_matches(ctx.principal, ctx.doc_id, by_profile=True)


def self_or_role(ownership, threshold: str):
    """Allow at-or-above *threshold*, otherwise fall back to *ownership*.

    The role is checked first: a privileged principal never depends on
    ownership data being present.
    """
    async def combined(ctx) -> bool:
        if ctx.principal is None:
            return False
        if R.has_role_at_or_above(ctx.principal, threshold):
            return True
        return (await evaluate(ownership, ctx)) is True

    combined.__name__ = f"self_or_role({getattr(ownership, '__name__', '?')}, {threshold})"
    return combined


def owner_or_role_filter(field: str, threshold: str = R.STAFF, by_profile: bool = False):
    """Row-scoped read: privileged principals see everything, others their own rows."""
    def scoped(ctx):
        if ctx.principal is None:
            return False
        if R.has_role_at_or_above(ctx.principal, threshold):
            return True
        mine = ctx.principal.profile_id if by_profile else ctx.principal.id
        if mine is None:
            return False
        return Equals(field, mine)

    scoped.__name__ = f"owner_or_role_filter({field}, {threshold})"
    return scoped
