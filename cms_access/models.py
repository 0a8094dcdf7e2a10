"""
Domain dataclasses used across the access layer.
"""

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Mapping, Optional, Set, Tuple

from cms_access.roles import normalize_roles


class LookupFailure(LookupError):
    """A related document could not be fetched while deciding access."""


def normalize_id(value) -> Optional[str]:
    """Canonical string form of an id that may arrive raw or as an expanded object."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dict):
        value = value.get("id")
    elif not isinstance(value, (str, int)):
        value = getattr(value, "id", None)
    if value is None or isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class Principal:
    """The authenticated actor behind a request."""
    id: str
    roles: FrozenSet[str] = frozenset()
    profile_id: Optional[str] = None  # linked profile, for self-profile checks
    display_name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "roles", normalize_roles(self.roles))

    @classmethod
    def from_user(cls, user: Optional[Mapping[str, Any]]) -> Optional["Principal"]:
        """Build a Principal from a user record or token payload; None if anonymous."""
        if not user:
            return None
        user_id = normalize_id(user.get("id", user.get("sub")))
        if user_id is None:
            return None
        roles = user.get("roles", user.get("role"))
        return cls(
            id=user_id,
            roles=normalize_roles(roles),
            profile_id=normalize_id(user.get("profile", user.get("profile_id"))),
            display_name=str(user.get("display_name") or ""),
        )

    def identities(self) -> Set[str]:
        ids = {self.id}
        if self.profile_id:
            ids.add(self.profile_id)
        return ids


# ── Row-level filters ────────────────────────────────────────────────

@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def to_where(self) -> Dict[str, Any]:
        return {self.field: {"equals": self.value}}


@dataclass(frozen=True)
class And:
    clauses: Tuple[Any, ...]

    def to_where(self) -> Dict[str, Any]:
        return {"and": [c.to_where() for c in self.clauses]}


@dataclass(frozen=True)
class Or:
    clauses: Tuple[Any, ...]

    def to_where(self) -> Dict[str, Any]:
        return {"or": [c.to_where() for c in self.clauses]}


def is_filter(value) -> bool:
    return isinstance(value, (Equals, And, Or))


# ── Request context ──────────────────────────────────────────────────

@dataclass
class RequestContext:
    """Everything a predicate may look at for one operation.

    Built fresh for every inbound operation. ``lookup`` is the host's
    ``find_by_id(collection, id)``; it may be sync or async. Documents it
    returns are cached on this context only.
    """
    principal: Optional[Principal] = None
    operation: str = "read"
    collection: Optional[str] = None
    doc_id: Any = None
    doc: Optional[Dict[str, Any]] = None
    data: Optional[Dict[str, Any]] = None
    sibling_data: Optional[Dict[str, Any]] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    lookup: Optional[Callable] = None
    _fetched: Dict[Tuple[str, str], Dict[str, Any]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        self.headers = {str(k).lower(): v for k, v in (self.headers or {}).items()}

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    async def fetch(self, collection: str, doc_id) -> Dict[str, Any]:
        """Fetch a document by id through ``lookup``, once per context."""
        key_id = normalize_id(doc_id)
        if key_id is None:
            raise LookupFailure(f"No id given for {collection} lookup")
        if self.lookup is None:
            raise LookupFailure(f"No document lookup configured for {collection}")

        key = (collection, key_id)
        if key in self._fetched:
            return self._fetched[key]

        doc = self.lookup(collection, key_id)
        if inspect.isawaitable(doc):
            doc = await doc
        if not doc:
            raise LookupFailure(f"{collection} {key_id} not found")

        self._fetched[key] = doc
        return doc
