import logging

import click
from flask import Flask, request, g
from flask_migrate import Migrate

from config import Config
from models import db
from routes import health_bp, public_bp, admin_auth_bp, admin_bookings_bp, admin_blocks_bp
from security.csrf import require_csrf
from security.password import hash_password
from utils.auth_context import load_admin_session


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=logging.DEBUG if app.config.get("DEBUG") else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(admin_bookings_bp)
    app.register_blueprint(admin_blocks_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_admin():
        if request.path == "/health":
            g.admin_session = None
            return
        load_admin_session()

    CSRF_EXEMPT_PATHS = {
        "/admin/login",
        "/health",
    }

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if request.path in CSRF_EXEMPT_PATHS:
                return None

            # Only enforce CSRF once the admin holds a cookie session
            if getattr(g, "admin_session", None) is not None:
                failure = require_csrf()
                if failure:
                    return failure

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; style-src 'unsafe-inline'; form-action 'self'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------

def register_cli(app):
    @app.cli.command("hash-admin-password")
    @click.password_option()
    def hash_admin_password(password):
        """Print a bcrypt hash to use as ADMIN_PASSWORD_HASH."""
        click.echo(hash_password(password))

    @app.cli.command("init-db")
    def init_db():
        """Create tables directly (local dev without migrations)."""
        db.create_all()
        click.echo("Tables created")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
