"""
Access that depends on a related document's owner or membership lists.

These predicates are the only asynchronous ones: when the document (or its
parent group) is not already in the request context it is fetched once by id
through ``RequestContext.fetch``. A failed lookup is reported as an
operational error and the predicate answers False. It is never retried.
"""

from typing import Any, Dict, Iterable, Optional

from cms_access import roles as R
from cms_access.models import normalize_id
from cms_access.ownership import acts_as, owner_matches
from cms_access.resolution import report_error

MEMBER_LISTS = ("admins", "moderators")


async def load_target(ctx, collection: str) -> Dict[str, Any]:
    """The document the operation targets: the loaded snapshot, or fetched by id."""
    if ctx.doc:
        return ctx.doc
    return await ctx.fetch(collection, ctx.doc_id)


def member_ids(container: Optional[Dict[str, Any]], lists: Iterable[str] = MEMBER_LISTS):
    ids = set()
    for name in lists:
        for ref in (container or {}).get(name) or []:
            ref_id = normalize_id(ref)
            if ref_id:
                ids.add(ref_id)
    return ids


def is_group_manager(principal, group: Optional[Dict[str, Any]],
                     lists: Iterable[str] = MEMBER_LISTS) -> bool:
    """Owner of the group, or listed in one of its management lists."""
    if principal is None or not group:
        return False
    if acts_as(principal, group.get("owner")):
        return True
    return not principal.identities().isdisjoint(member_ids(group, lists))


def _has_member_lists(ref) -> bool:
    return isinstance(ref, dict) and any(name in ref for name in MEMBER_LISTS)


def record_owner(collection: str, field: str, threshold: str = R.ADMIN,
                 any_identity: bool = False):
    """Owner of the target record (fetched when not loaded) or *threshold* and above.

    With *any_identity* the owner field may hold the principal's profile id
    as well as its user id.
    """
    async def owner(ctx) -> bool:
        if ctx.principal is None:
            return False
        if R.has_role_at_or_above(ctx.principal, threshold):
            return True
        if not ctx.doc and ctx.doc_id is None:
            return False
        try:
            doc = await load_target(ctx, collection)
        except Exception as e:
            report_error(f"lookup of {collection} {ctx.doc_id} failed", e)
            return False
        if any_identity:
            return acts_as(ctx.principal, doc.get(field))
        return owner_matches(ctx.principal, doc.get(field))

    owner.__name__ = f"record_owner({collection}.{field}, {threshold})"
    return owner


def group_manager(collection: str = "groups", threshold: str = R.STAFF):
    """For a group itself: *threshold* and above, the owner, or a listed admin/moderator."""
    async def manager(ctx) -> bool:
        if ctx.principal is None:
            return False
        if R.has_role_at_or_above(ctx.principal, threshold):
            return True
        if not ctx.doc and ctx.doc_id is None:
            return False
        try:
            group = await load_target(ctx, collection)
        except Exception as e:
            report_error(f"lookup of {collection} {ctx.doc_id} failed", e)
            return False
        return is_group_manager(ctx.principal, group)

    manager.__name__ = f"group_manager({collection}, {threshold})"
    return manager


def group_delegate(collection: str, parent_field: str = "group",
                   creator_field: str = "author", parent_collection: str = "groups",
                   threshold: str = R.STAFF):
    """For a resource inside a group.

    Allowed: *threshold* and above, the resource's creator, or a manager of the
    parent group. The parent is fetched only when the resource carries a bare
    id rather than an expanded group with its membership lists.
    """
    async def delegate(ctx) -> bool:
        if ctx.principal is None:
            return False
        if R.has_role_at_or_above(ctx.principal, threshold):
            return True
        if not ctx.doc and ctx.doc_id is None:
            return False

        try:
            resource = await load_target(ctx, collection)
            if acts_as(ctx.principal, resource.get(creator_field)):
                return True

            parent_ref = resource.get(parent_field)
            if _has_member_lists(parent_ref):
                parent = parent_ref
            elif normalize_id(parent_ref) is None:
                return False
            else:
                parent = await ctx.fetch(parent_collection, parent_ref)
        except Exception as e:
            report_error(f"delegation lookup for {collection} {ctx.doc_id} failed", e)
            return False

        return is_group_manager(ctx.principal, parent)

    delegate.__name__ = f"group_delegate({collection}.{parent_field}, {threshold})"
    return delegate
