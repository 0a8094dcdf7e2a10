"""
Flask route handlers for the REST API.
"""

import asyncio
import sys
import traceback
from datetime import datetime, timezone

from flask import request, jsonify

from cms_access.collection_rules import (
    COLLECTIONS,
    resolve_collection_access,
    resolve_field_access,
)
from cms_access.database import make_document_lookup
from cms_access.models import RequestContext, is_filter
from cms_access.rbac import load_principal
from cms_access.api.auth import (
    sessions,
    cleanup_expired_sessions,
    generate_token,
    optional_token,
    token_required,
)

DENIED = {"error": "Permission denied"}
BAD_BODY = {"error": "Request body must be a JSON object"}


def _principal_json(principal):
    return {
        "id": principal.id,
        "display_name": principal.display_name,
        "roles": sorted(principal.roles),
        "profile_id": principal.profile_id,
    }


def register_routes(app, engine):
    """Register all API routes on the Flask *app*."""
    lookup = make_document_lookup(engine) if engine is not None else None

    def build_context(body):
        return RequestContext(
            principal=request.principal,
            doc_id=body.get("id"),
            doc=body.get("doc"),
            data=body.get("data"),
            sibling_data=body.get("sibling_data"),
            headers=dict(request.headers),
            lookup=lookup,
        )

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "CMS Access API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "access": "/api/access/<collection>/<operation>",
                "field_access": "/api/access/<collection>/fields/<field>/<operation>",
                "logout": "/api/auth/logout",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        from sqlalchemy import text as sa_text

        checks = {"database": False, "rules": bool(COLLECTIONS)}
        try:
            if engine:
                with engine.connect() as conn:
                    conn.execute(sa_text("SELECT 1"))
                checks["database"] = True
        except Exception as e:
            print(f"[health] Database check failed: {e}", file=sys.stderr)

        all_healthy = all(checks.values())
        return jsonify({
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
            "active_sessions": len(sessions),
        }), 200 if all_healthy else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        if not request.is_json:
            return jsonify({"error": "Content-Type must be application/json"}), 400

        api_key = (request.json.get("api_key") or "").strip()
        if not api_key:
            return jsonify({"error": "api_key is required"}), 400

        try:
            principal = load_principal(engine, api_key)
        except ValueError as e:
            return jsonify({"error": f"Authentication failed: {str(e)}"}), 401
        except Exception as e:
            print(f"[ERROR] Login error: {e}", file=sys.stderr)
            traceback.print_exc()
            return jsonify({"error": "Internal server error during login"}), 500

        cleanup_expired_sessions()
        token = generate_token(principal)
        now = datetime.now(timezone.utc)
        sessions[token] = {
            "principal": principal,
            "created_at": now,
            "last_activity": now,
        }
        print(f"[auth] Logged in: {principal.display_name} (roles={sorted(principal.roles)})")
        return jsonify({
            "success": True,
            "token": token,
            "user": _principal_json(principal),
        }), 200

    @app.route("/api/auth/logout", methods=["POST"])
    @token_required
    def logout():
        sessions.pop(request.token, None)
        return jsonify({"success": True, "message": "Logged out successfully"}), 200

    @app.route("/api/user/profile", methods=["GET"])
    @token_required
    def get_profile():
        session_data = request.session_data
        return jsonify({
            "success": True,
            "user": _principal_json(request.principal),
            "session": {
                "created_at": session_data["created_at"].isoformat(),
                "last_activity": session_data["last_activity"].isoformat(),
            },
        }), 200

    # ── Access checks ────────────────────────────────────────────────

    @app.route("/api/access/<collection>/<operation>", methods=["POST"])
    @optional_token
    def check_document_access(collection, operation):
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return jsonify(BAD_BODY), 400
        ctx = build_context(body)
        try:
            decision = asyncio.run(resolve_collection_access(collection, operation, ctx))
        except KeyError as e:
            return jsonify({"error": "Not found", "message": e.args[0]}), 404

        if is_filter(decision):
            return jsonify({"allowed": True, "where": decision.to_where()}), 200
        if decision is True:
            return jsonify({"allowed": True}), 200
        return jsonify(DENIED), 403

    @app.route("/api/access/<collection>/fields/<field>/<operation>", methods=["POST"])
    @optional_token
    def check_field_access(collection, field, operation):
        body = request.get_json(silent=True) or {}
        if not isinstance(body, dict):
            return jsonify(BAD_BODY), 400
        ctx = build_context(body)
        try:
            allowed = asyncio.run(resolve_field_access(collection, field, operation, ctx))
        except KeyError as e:
            return jsonify({"error": "Not found", "message": e.args[0]}), 404

        if allowed:
            return jsonify({"allowed": True}), 200
        return jsonify(DENIED), 403

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error"}), 500
