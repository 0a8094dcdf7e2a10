"""
Tests for the Flask host surface: login, token handling and access-check routes.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cms_access.api import auth
from cms_access.api.app import create_app
from cms_access.models import Principal


# ── Helpers / Fakes ──────────────────────────────────────────────────

class FakeResult:
    def __init__(self, row_dict_or_none):
        self._row = row_dict_or_none

    def mappings(self):
        return self

    def first(self):
        return self._row


class FakeConn:
    def __init__(self, rows):
        self._rows = rows

    def execute(self, sql, params=None):
        sql = str(sql)
        for marker, row in self._rows.items():
            if marker in sql:
                return FakeResult(row)
        return FakeResult(None)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeEngine:
    """Answers queries by the table name they mention."""
    def __init__(self, rows=None):
        self._rows = rows or {}

    def connect(self):
        return FakeConn(self._rows)


USER_ROW = {"id": 1, "display_name": "Post Author", "roles": "free", "profile_id": "p1"}
POST_ROW = {"id": "post-1", "author": "1", "group": "g1"}
GROUP_ROW = {"id": "g1", "owner": "9", "admins": '["5"]', "moderators": "[]"}


@pytest.fixture
def client():
    auth.sessions.clear()
    engine = FakeEngine({
        "portal_users": USER_ROW,
        "group_posts": POST_ROW,
        "FROM groups": GROUP_ROW,
        "SELECT 1": {"ok": 1},
    })
    app = create_app(engine=engine)
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c
    auth.sessions.clear()


def login(client):
    resp = client.post("/api/auth/login", json={"api_key": "cms_abc"})
    assert resp.status_code == 200
    return resp.get_json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ── Tests: info / auth ───────────────────────────────────────────────

def test_index(client):
    assert client.get("/").get_json()["service"] == "CMS Access API"


def test_health(client):
    body = client.get("/health").get_json()
    assert body["checks"] == {"database": True, "rules": True}


def test_login_and_profile(client):
    token = login(client)
    body = client.get("/api/user/profile", headers=bearer(token)).get_json()
    assert body["user"] == {"id": "1", "display_name": "Post Author", "roles": ["free"], "profile_id": "p1"}


def test_login_requires_key(client):
    assert client.post("/api/auth/login", json={}).status_code == 400
    assert client.post("/api/auth/login", data="x").status_code == 400


def test_login_bad_key():
    auth.sessions.clear()
    app = create_app(engine=FakeEngine())
    resp = app.test_client().post("/api/auth/login", json={"api_key": "nope"})
    assert resp.status_code == 401


def test_profile_requires_token(client):
    assert client.get("/api/user/profile").status_code == 401
    assert client.get("/api/user/profile", headers={"Authorization": "Token x"}).status_code == 401
    assert client.get("/api/user/profile", headers=bearer("garbage")).status_code == 401


def test_login_drops_stale_sessions(client):
    stale = datetime.now(timezone.utc) - timedelta(hours=auth.TOKEN_EXPIRY_HOURS + 1)
    auth.sessions["old-token"] = {"principal": None, "created_at": stale, "last_activity": stale}
    token = login(client)
    assert "old-token" not in auth.sessions
    assert token in auth.sessions


def test_logout_ends_session(client):
    token = login(client)
    assert client.post("/api/auth/logout", headers=bearer(token)).status_code == 200
    assert client.get("/api/user/profile", headers=bearer(token)).status_code == 401


def test_token_payload_round_trips_principal():
    principal = Principal(id="7", roles=frozenset({"staff"}), profile_id="p7", display_name="S")
    payload = auth.verify_token(auth.generate_token(principal))
    assert Principal.from_user(payload) == principal


# ── Tests: access checks ─────────────────────────────────────────────

def test_anonymous_public_read(client):
    resp = client.post("/api/access/shows/read", json={})
    assert resp.status_code == 200
    assert resp.get_json() == {"allowed": True}


def test_denial_is_generic(client):
    resp = client.post("/api/access/shows/delete", json={})
    assert resp.status_code == 403
    assert resp.get_json() == {"error": "Permission denied"}


def test_row_filter_returned_as_where(client):
    token = login(client)
    resp = client.post("/api/access/chats/read", json={}, headers=bearer(token))
    assert resp.get_json() == {"allowed": True, "where": {"members": {"equals": "p1"}}}


def test_owner_update_uses_lookup(client):
    token = login(client)
    resp = client.post("/api/access/group-posts/update", json={"id": "post-1"}, headers=bearer(token))
    assert resp.status_code == 200


def test_field_access_route(client):
    token = login(client)
    resp = client.post(
        "/api/access/groups/fields/admins/update",
        json={"doc": {"owner": "1", "admins": []}},
        headers=bearer(token),
    )
    assert resp.status_code == 200
    resp = client.post(
        "/api/access/groups/fields/internalNotes/read",
        json={"doc": {"owner": "1"}},
        headers=bearer(token),
    )
    assert resp.status_code == 403


def test_non_object_body_is_rejected(client):
    resp = client.post("/api/access/shows/read", json=["id", "x"])
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Request body must be a JSON object"}
    assert client.post("/api/access/shows/fields/active/update", json=[1]).status_code == 400


def test_unknown_collection_is_404(client):
    assert client.post("/api/access/nope/read", json={}).status_code == 404
    assert client.post("/api/access/shows/fields/nope/read", json={}).status_code == 404


def test_bad_token_on_access_check(client):
    resp = client.post("/api/access/shows/read", json={}, headers=bearer("garbage"))
    assert resp.status_code == 401
