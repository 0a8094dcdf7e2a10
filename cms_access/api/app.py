"""
Flask application factory and server entry-point for the access-check API.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from cms_access import config
from cms_access.collection_rules import COLLECTIONS
from cms_access.database import init_engine
from cms_access.api.routes import register_routes


def create_app(engine=None):
    """Build the access-check API around *engine* (connects from env when None)."""
    app = Flask(__name__)
    CORS(app)

    # ── Database for delegation lookups and key logins ───────────────
    if engine is None:
        try:
            print("[init] Connecting to the CMS database...")
            engine = init_engine()
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)

    register_routes(app, engine)

    public_channel = bool(config.CMS_PUBLIC_API_KEY and config.PUBLIC_FETCH_CODE)
    print(f"[init] Access rules loaded for {len(COLLECTIONS)} collections")
    print(f"[init] Public API-key channel: {'enabled' if public_channel else 'disabled'}")
    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("CMS Access – permission check API")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Listening on {host}:{port} (debug={debug})")
    print(f"[server] Session expiry: {config.TOKEN_EXPIRY_HOURS} hours")
    print(f"[server] Collections: {', '.join(sorted(COLLECTIONS))}")
    print("\nAccess checks:")
    print("  - POST /api/access/<collection>/<operation>")
    print("  - POST /api/access/<collection>/fields/<field>/<operation>")
    print("Sessions:")
    print("  - POST /api/auth/login   GET /api/user/profile   POST /api/auth/logout")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
