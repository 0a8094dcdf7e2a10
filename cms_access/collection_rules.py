"""
Access rules of the platform's collections.

Each collection maps its four operations to a document rule and, where
individual fields are locked down, each field operation to a field rule.
All rules are composed from the predicate library; nothing here decides
access on its own.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from cms_access import roles as R
from cms_access import predicates as P
from cms_access.delegation import group_delegate, group_manager, record_owner
from cms_access.models import And, Equals
from cms_access.ownership import (
    is_owner,
    is_participant,
    is_self,
    is_self_profile,
    owner_or_role_filter,
)
from cms_access.resolution import (
    as_document_access,
    as_field_access,
    resolve_document,
    resolve_field,
)

OPERATIONS = ("read", "create", "update", "delete")
FIELD_OPERATIONS = ("read", "create", "update")


@dataclass
class FieldAccess:
    read: Optional[Callable] = None
    create: Optional[Callable] = None
    update: Optional[Callable] = None

    def __post_init__(self):
        for op in FIELD_OPERATIONS:
            rule = getattr(self, op)
            if rule is not None:
                setattr(self, op, as_field_access(rule))


@dataclass
class CollectionAccess:
    read: Callable
    create: Callable
    update: Callable
    delete: Callable
    fields: Dict[str, FieldAccess] = field(default_factory=dict)

    def __post_init__(self):
        for op in OPERATIONS:
            setattr(self, op, as_document_access(getattr(self, op)))


# ── Collection-specific rules ────────────────────────────────────────

def can_update_article(ctx) -> bool:
    """Creators edit drafts; only staff may touch published or scheduled articles."""
    status = (ctx.data or {}).get("status")
    if status in ("published", "scheduled"):
        return P.is_staff(ctx)
    return P.is_creator(ctx) or P.is_staff(ctx)


def can_read_media(ctx):
    """Logged-in users see everything; the public channel sees public, active assets."""
    if P.is_logged_in(ctx):
        return True
    if not P.api_key_read(ctx):
        return False
    return And((Equals("visibility", "public"), Equals("status", "active")))


def _broadcast_rules() -> CollectionAccess:
    return CollectionAccess(
        read=P.allow_all,
        create=P.is_editor_or_above,
        update=P.is_staff,
        delete=P.is_admin,
        fields={
            "sortOrder": FieldAccess(update=P.is_staff),
            "active": FieldAccess(update=P.is_staff),
            "createdBy": FieldAccess(update=P.is_admin),
            "updatedBy": FieldAccess(update=P.is_admin),
        },
    )


COLLECTIONS: Dict[str, CollectionAccess] = {
    "shows": _broadcast_rules(),
    "episodes": _broadcast_rules(),
    "schedule": _broadcast_rules(),
    "articles": CollectionAccess(
        read=P.allow_all,
        create=P.is_creator,
        update=can_update_article,
        delete=P.is_staff,
    ),
    "events": CollectionAccess(
        read=P.allow_all,
        create=P.is_admin,
        update=P.is_admin,
        delete=P.is_admin,
    ),
    "users": CollectionAccess(
        read=P.any_of(P.is_admin, is_self),
        create=P.is_admin_only,
        update=P.any_of(P.is_admin, is_self),
        delete=P.is_admin_only,
        fields={"roles": FieldAccess(update=P.is_admin)},
    ),
    "profiles": CollectionAccess(
        read=P.allow_all,
        create=P.is_logged_in,
        update=P.any_of(P.is_admin, is_self_profile),
        delete=P.is_admin,
    ),
    "groups": CollectionAccess(
        read=P.allow_all,
        create=P.is_logged_in,
        update=record_owner("groups", "owner", any_identity=True),
        delete=record_owner("groups", "owner", any_identity=True),
        fields={
            "owner": FieldAccess(update=P.is_admin),
            "admins": FieldAccess(update=group_manager()),
            "moderators": FieldAccess(update=group_manager()),
            "pendingMembers": FieldAccess(update=group_manager()),
            "blockedProfiles": FieldAccess(update=group_manager()),
            "banStatus": FieldAccess(update=P.is_moderator_or_above),
            "banReason": FieldAccess(update=P.is_moderator_or_above),
            "internalNotes": FieldAccess(read=P.is_admin, update=P.is_admin),
        },
    ),
    "group-posts": CollectionAccess(
        read=P.allow_all,
        create=P.is_logged_in,
        update=group_delegate("group-posts"),
        delete=group_delegate("group-posts"),
    ),
    "group-messages": CollectionAccess(
        read=P.allow_all,
        create=P.is_logged_in,
        update=record_owner("group-messages", "author", any_identity=True),
        delete=group_delegate("group-messages"),
    ),
    "likes": CollectionAccess(
        read=P.public_read,
        create=P.is_logged_in,
        update=P.deny_all,
        delete=P.any_of(P.is_admin, is_owner("user", any_identity=True)),
    ),
    "blocks": CollectionAccess(
        read=P.any_of(P.is_staff_or_above, is_participant("blocker", "blocked", by_profile=True)),
        create=P.is_logged_in,
        update=P.deny_all,
        delete=P.any_of(P.is_admin, is_owner("blocker", by_profile=True)),
        fields={
            "notes": FieldAccess(read=P.is_staff, update=P.is_staff),
            "aiEvidence": FieldAccess(read=P.is_staff, update=P.is_staff),
        },
    ),
    "media": CollectionAccess(
        read=can_read_media,
        create=P.is_logged_in,
        update=record_owner("media", "createdBy", threshold=R.STAFF),
        delete=P.is_admin,
        fields={"internalNotes": FieldAccess(
            read=P.is_staff, create=P.is_staff, update=P.is_staff,
        )},
    ),
    "chats": CollectionAccess(
        read=owner_or_role_filter("members", R.STAFF, by_profile=True),
        create=P.is_logged_in,
        update=P.is_logged_in,
        delete=P.is_admin_only,
    ),
}


def get_collection(slug: str) -> CollectionAccess:
    try:
        return COLLECTIONS[slug]
    except KeyError:
        raise KeyError(f"Unknown collection: {slug}") from None


async def resolve_collection_access(slug: str, operation: str, ctx):
    """Evaluate the document rule for *operation* on collection *slug*."""
    if operation not in OPERATIONS:
        raise KeyError(f"Unknown operation: {operation}")
    ctx.collection = ctx.collection or slug
    ctx.operation = operation
    rule = getattr(get_collection(slug), operation)
    return await resolve_document(rule, ctx)


async def resolve_field_access(slug: str, field_name: str, operation: str, ctx) -> bool:
    """Evaluate a field rule; field operations without a rule are allowed."""
    if operation not in FIELD_OPERATIONS:
        raise KeyError(f"Unknown field operation: {operation}")
    fields = get_collection(slug).fields
    if field_name not in fields:
        raise KeyError(f"Unknown field: {slug}.{field_name}")
    ctx.collection = ctx.collection or slug
    ctx.operation = operation
    rule = getattr(fields[field_name], operation)
    if rule is None:
        return True
    return await resolve_field(rule, ctx)
