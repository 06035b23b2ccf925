"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback

from flask import Flask
from flask_cors import CORS

from healthapp.api.auth import TOKEN_LIFETIME
from healthapp.api.pages import register_page_gate, register_pages
from healthapp.api.routes import register_routes
from healthapp.config import IS_PRODUCTION
from healthapp.database import init_engine


def create_app(engine=None):
    """Build and return a fully configured Flask application."""
    app = Flask(__name__)
    CORS(app, supports_credentials=True)

    # ── Initialise shared resources ──────────────────────────────────
    if engine is None:
        try:
            print("[init] Initializing database connection...")
            engine = init_engine()
            print("[init] ✓ API server ready")
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)

    # ── Register gate and routes ─────────────────────────────────────
    register_page_gate(app)
    register_routes(app, engine)
    register_pages(app, engine)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("HealthApp – REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = not IS_PRODUCTION and os.getenv("FLASK_DEBUG") == "1"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Secure cookies: {IS_PRODUCTION}")
    print(f"[server] Session lifetime: {TOKEN_LIFETIME.days} days")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/login")
    print(f"  - POST http://{host}:{port}/api/auth/register")
    print(f"  - GET  http://{host}:{port}/api/auth/me")
    print(f"  - POST http://{host}:{port}/api/auth/logout")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
