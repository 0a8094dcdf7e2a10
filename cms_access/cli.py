"""
Interactive CLI for exploring what a user may do in the CMS.
Log in with an access key, see the permission matrix, then check single operations.
"""

import asyncio

from cms_access.collection_rules import COLLECTIONS, OPERATIONS, resolve_collection_access
from cms_access.database import init_engine, make_document_lookup
from cms_access.models import RequestContext, is_filter
from cms_access.rbac import load_principal


def describe(decision) -> str:
    if is_filter(decision):
        return f"scoped {decision.to_where()}"
    return "allow" if decision is True else "deny"


async def permission_matrix(principal, lookup=None):
    """Decision for every collection/operation with no target document."""
    matrix = {}
    for slug in sorted(COLLECTIONS):
        row = {}
        for op in OPERATIONS:
            ctx = RequestContext(principal=principal, lookup=lookup)
            row[op] = await resolve_collection_access(slug, op, ctx)
        matrix[slug] = row
    return matrix


def print_matrix(matrix):
    width = max(len(slug) for slug in matrix) + 2
    print("collection".ljust(width) + "".join(op.ljust(10) for op in OPERATIONS))
    for slug, row in matrix.items():
        cells = []
        for op in OPERATIONS:
            decision = row[op]
            cells.append(("scoped" if is_filter(decision) else describe(decision)).ljust(10))
        print(slug.ljust(width) + "".join(cells))


def main():
    print("=== CMS Access: permission explorer ===\n")

    engine = init_engine()
    lookup = make_document_lookup(engine)

    # ── Login ────────────────────────────────────────────────────────
    try:
        api_key = input("Enter access key (or 'quit'): ").strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    if not api_key or api_key.lower() in {"quit", "exit"}:
        print("Goodbye.")
        return

    try:
        principal = load_principal(engine, api_key)
    except Exception as e:
        print("\n[ERROR] Login failed.")
        print("Details:", e)
        return

    print(f"\n[auth] Logged in as: {principal.display_name} (roles={sorted(principal.roles)})\n")
    print_matrix(asyncio.run(permission_matrix(principal, lookup)))

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        try:
            line = input("\nCheck '<collection> <operation> [id]' (or 'quit'): ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue
        if line.lower() in {"quit", "exit"}:
            print("Goodbye.")
            break

        parts = line.split()
        if len(parts) not in (2, 3):
            print("Usage: <collection> <operation> [id]")
            continue

        slug, op = parts[0], parts[1]
        doc_id = parts[2] if len(parts) == 3 else None
        ctx = RequestContext(principal=principal, doc_id=doc_id, lookup=lookup)
        try:
            decision = asyncio.run(resolve_collection_access(slug, op, ctx))
        except KeyError as e:
            print(f"[ERROR] {e.args[0]}")
            continue

        print(f"[access] {slug}.{op}{' #' + doc_id if doc_id else ''}: {describe(decision)}")


if __name__ == "__main__":
    main()
