"""
Catalogue of reusable access predicates.

A predicate takes a RequestContext and answers True, False, a row filter, or
an awaitable of one of those. Role-gated predicates check the admin tier
before anything narrower, so an administrator is never denied by a rule
written for someone else.
"""

import hmac

from cms_access import config
from cms_access import roles as R
from cms_access.models import is_filter
from cms_access.resolution import evaluate


# ── Unconditional ────────────────────────────────────────────────────

def allow_all(ctx) -> bool:
    return True


def deny_all(ctx) -> bool:
    return False


# ── Authentication ───────────────────────────────────────────────────

def is_logged_in(ctx) -> bool:
    return ctx.principal is not None


# ── Roles ────────────────────────────────────────────────────────────

def role_gate(*allowed: str):
    """Allow admin-tier principals and anyone holding one of *allowed*."""
    allowed = frozenset(allowed)

    def gate(ctx) -> bool:
        return R.has_role(ctx.principal, allowed)

    gate.__name__ = "role_gate(" + ",".join(sorted(allowed)) + ")"
    return gate


def at_or_above(required: str):
    """Allow principals holding *required* or any more privileged role."""
    def gate(ctx) -> bool:
        return R.has_role_at_or_above(ctx.principal, required)

    gate.__name__ = f"at_or_above({required})"
    return gate


def is_admin(ctx) -> bool:
    return R.is_admin_tier(ctx.principal)


is_admin_only = role_gate(R.ADMIN)
is_staff = role_gate(R.STAFF)
is_editorial = role_gate(R.ADMIN, R.STAFF, R.EDITOR)
is_creator = role_gate(R.MODERATOR, R.EDITOR, R.HOST, R.PRO, R.CREATOR)

is_staff_or_above = at_or_above(R.STAFF)
is_moderator_or_above = at_or_above(R.MODERATOR)
is_editor_or_above = at_or_above(R.EDITOR)


# ── Public API channel ───────────────────────────────────────────────

def api_key_read(ctx) -> bool:
    """Anonymous read through the shared public API key and fetch code."""
    expected_key = config.CMS_PUBLIC_API_KEY
    expected_code = config.PUBLIC_FETCH_CODE
    if not expected_key or not expected_code:
        return False

    api_key = ctx.header("x-api-key")
    fetch_code = ctx.header("x-fetch-code")
    if not api_key or not fetch_code:
        return False

    return (
        hmac.compare_digest(str(api_key).encode(), expected_key.encode())
        and hmac.compare_digest(str(fetch_code).encode(), expected_code.encode())
    )


def public_read(ctx) -> bool:
    return is_logged_in(ctx) or api_key_read(ctx)


# ── Composition ──────────────────────────────────────────────────────

def any_of(*predicates):
    """Short-circuit OR: the first granting decision (True or a filter) wins."""
    async def combined(ctx):
        for predicate in predicates:
            result = await evaluate(predicate, ctx)
            if result is True or is_filter(result):
                return result
        return False

    combined.__name__ = "any_of(" + ", ".join(
        getattr(p, "__name__", "?") for p in predicates
    ) + ")"
    return combined
