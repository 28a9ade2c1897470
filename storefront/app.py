from datetime import timedelta
from typing import Optional

import click
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_pymongo import PyMongo
from pymongo import ASCENDING
from werkzeug.middleware.proxy_fix import ProxyFix

from .accounts import ROLE_ADMIN, AccountStore
from .auth_service import AuthService
from .config import Settings, get_settings
from .errors import register_error_handlers
from .mailer import PasswordResetMailer
from .middleware import AccessGuard
from .rate_limit import SlidingWindowRateLimiter
from .routes import register_routes
from .security import build_security
from .seed import seed_catalog
from .validation import normalize_email


def create_app(
    settings: Optional[Settings] = None,
    database=None,
    mailer=None,
) -> Flask:
    """Create and configure the Flask application."""
    settings = settings or get_settings()
    app = Flask(__name__)
    app.logger.setLevel(settings.log_level)

    # Honor proxy headers so rate limiting sees the real client address.
    if settings.trusted_proxy_hops:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=settings.trusted_proxy_hops,
            x_proto=settings.trusted_proxy_hops,
            x_host=settings.trusted_proxy_hops,
            x_port=settings.trusted_proxy_hops,
        )

    # --- Configuration ---
    app.config["JWT_SECRET_KEY"] = settings.jwt_secret_key
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(seconds=settings.jwt_ttl_seconds)
    app.config["MONGO_URI"] = settings.mongo_uri
    app.config["STOREFRONT_SETTINGS"] = settings

    # --- Initialize extensions ---
    CORS(app, supports_credentials=True, origins=list(settings.cors_allowed_origins) or "*")
    JWTManager(app)

    if database is None:
        mongo = PyMongo(app)
        database = mongo.db
    db = database

    store = AccountStore(db.users)
    try:
        store.ensure_indexes()
        db.categories.create_index([("slug", ASCENDING)], unique=True)
        db.carts.create_index([("user", ASCENDING)], unique=True)
        db.wishlists.create_index([("user", ASCENDING)], unique=True)
        db.orders.create_index([("user", ASCENDING), ("created_at", -1)])
    except Exception as exc:
        app.logger.warning("Unable to ensure indexes: %s", exc)

    hasher, codec, reset_tokens = build_security(settings)
    auth_service = AuthService(
        store,
        hasher,
        codec,
        reset_tokens,
        mailer or PasswordResetMailer(settings),
        logger=app.logger,
    )
    guard = AccessGuard(store, codec)
    limiter = (
        SlidingWindowRateLimiter(
            settings.rate_limit_requests, settings.rate_limit_window_seconds
        )
        if settings.rate_limit_enabled
        else None
    )

    app.extensions["storefront"] = {
        "db": db,
        "store": store,
        "auth_service": auth_service,
        "guard": guard,
        "limiter": limiter,
    }

    register_error_handlers(app)
    register_routes(
        app, db, auth_service=auth_service, store=store, guard=guard, limiter=limiter
    )

    @app.route("/")
    def index():
        return "App is working", 200

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"}), 200

    # --- CLI ---

    @app.cli.command("seed")
    def seed_command():
        """Replace categories and products with the sample catalog."""
        categories, products = seed_catalog(db)
        click.echo(f"Seeded {categories} categories and {products} products.")

    @app.cli.command("promote-admin")
    @click.argument("email")
    def promote_admin_command(email):
        """Grant the admin role to the account registered with EMAIL."""
        account = store.find_by_email(normalize_email(email))
        if not account:
            raise click.ClickException(f"No account registered with {email}.")
        store.update(account["_id"], {"role": ROLE_ADMIN})
        click.echo(f"{account.get('username') or email} is now an admin.")

    return app
