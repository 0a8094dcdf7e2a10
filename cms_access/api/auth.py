"""
JWT authentication helpers and middleware for the Flask API.
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Dict, Any, Optional

import jwt
from flask import request, jsonify

from cms_access.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from cms_access.models import Principal

# In-memory session store (use Redis in production)
# Structure: {token: {"principal": Principal, "created_at": datetime, "last_activity": datetime}}
sessions: Dict[str, Dict[str, Any]] = {}


def generate_token(principal: Principal) -> str:
    """Generate a JWT token for an authenticated principal."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal.id,
        "roles": sorted(principal.roles),
        "profile": principal.profile_id,
        "display_name": principal.display_name,
        "iat": now,
        "exp": now + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, SECRET_KEY, algorithm="HS256")


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def _bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split(" ")
    if len(parts) == 2 and parts[0] == "Bearer" and parts[1]:
        return parts[1]
    return None


def _session_for(token: str) -> Optional[Dict[str, Any]]:
    if not verify_token(token):
        return None
    session = sessions.get(token)
    if session is not None:
        session["last_activity"] = datetime.now(timezone.utc)
    return session


def token_required(f):
    """Decorator that protects endpoints with JWT authentication."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if "Authorization" in request.headers and _bearer_token() is None:
            return jsonify({"error": "Invalid authorization header format"}), 401

        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication token is missing"}), 401

        session = _session_for(token)
        if session is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        request.session_data = session
        request.token = token
        request.principal = session["principal"]
        return f(*args, **kwargs)

    return decorated


def optional_token(f):
    """Like token_required, but lets anonymous requests through as principal=None."""
    @wraps(f)
    def decorated(*args, **kwargs):
        request.principal = None
        token = _bearer_token()
        if token:
            session = _session_for(token)
            if session is None:
                return jsonify({"error": "Invalid or expired token"}), 401
            request.principal = session["principal"]
        return f(*args, **kwargs)

    return decorated


def cleanup_expired_sessions():
    """Remove sessions that have been inactive beyond TOKEN_EXPIRY_HOURS."""
    now = datetime.now(timezone.utc)
    expired = [
        tok for tok, data in sessions.items()
        if (now - data["last_activity"]).total_seconds() > TOKEN_EXPIRY_HOURS * 3600
    ]
    for tok in expired:
        del sessions[tok]
    if expired:
        print(f"[cleanup] Removed {len(expired)} expired sessions")
