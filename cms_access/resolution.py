"""
Document-level vs field-level access resolution.

Document rules may answer True, False or a row filter. Field rules must answer
a plain bool: the host cannot apply a filter to a single field, and a filter
object is truthy. Every rule handed to the host goes through one of the two
adapters below so that contract is enforced in one place.
"""

import inspect
import sys
import traceback
from functools import wraps

from cms_access.models import is_filter


def report_error(message: str, exc: BaseException = None):
    """Surface an infrastructure failure to the operator (never to the caller)."""
    print(f"[access][ERROR] {message}", file=sys.stderr)
    if exc is not None:
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)


async def evaluate(predicate, ctx):
    """Call *predicate* and await the result if it is awaitable."""
    result = predicate(ctx)
    if inspect.isawaitable(result):
        result = await result
    return result


def _rule_name(predicate) -> str:
    return getattr(predicate, "__name__", type(predicate).__name__)


def as_document_access(predicate):
    """Wrap a predicate for collection/document access: bool or filter."""
    @wraps(predicate)
    async def document_access(ctx):
        try:
            result = await evaluate(predicate, ctx)
        except Exception as e:
            report_error(f"document rule {_rule_name(predicate)} failed on {ctx.collection}", e)
            return False
        if result is True or is_filter(result):
            return result
        return False

    document_access.access_kind = "document"
    return document_access


def as_field_access(predicate):
    """Wrap a predicate for field access: strictly True or False."""
    @wraps(predicate)
    async def field_access(ctx):
        try:
            result = await evaluate(predicate, ctx)
        except Exception as e:
            report_error(f"field rule {_rule_name(predicate)} failed on {ctx.collection}", e)
            return False
        return result is True

    field_access.access_kind = "field"
    return field_access


async def resolve_document(rule, ctx):
    """Evaluate *rule* as document access, adapting it unless already adapted."""
    if getattr(rule, "access_kind", None) != "document":
        rule = as_document_access(rule)
    return await rule(ctx)


async def resolve_field(rule, ctx) -> bool:
    """Evaluate *rule* as field access; a document-adapted rule is re-adapted."""
    if getattr(rule, "access_kind", None) != "field":
        rule = as_field_access(rule)
    return await rule(ctx)
