"""
Database engine initialisation and the document lookup used by delegation rules.
"""

import asyncio
import json
import sys
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, text

from cms_access.config import get_env, ID_LIST_COLUMNS, LOOKUP_TABLES


def init_engine():
    """Create a SQLAlchemy engine and verify the connection."""
    db_uri = get_env("DB_URI")
    engine = create_engine(db_uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def _decode_row(row) -> Dict[str, Any]:
    doc = dict(row)
    for col in doc.keys() & ID_LIST_COLUMNS:
        value = doc[col]
        if isinstance(value, str):
            doc[col] = json.loads(value) if value.strip() else []
        elif value is None:
            doc[col] = []
    return doc


def find_by_id(engine, collection: str, doc_id) -> Optional[Dict[str, Any]]:
    """Read one document by id from the table registered for *collection*."""
    table = LOOKUP_TABLES.get(collection)
    if table is None:
        raise ValueError(f"No lookup table registered for collection '{collection}'.")

    sql = text(f"SELECT * FROM {table} WHERE id = :id")
    with engine.connect() as conn:
        row = conn.execute(sql, {"id": doc_id}).mappings().first()

    return _decode_row(row) if row else None


def make_document_lookup(engine):
    """Async ``find_by_id(collection, id)`` for RequestContext.lookup."""
    async def lookup(collection: str, doc_id):
        return await asyncio.to_thread(find_by_id, engine, collection, doc_id)

    return lookup
