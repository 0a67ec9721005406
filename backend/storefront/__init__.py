# backend/storefront/__init__.py
from datetime import timedelta

from flask import Flask, request

from .config import Config, REQUIRED_SETTINGS
from .errors import ConfigurationError
from .extensions import db, migrate


def _check_required_settings(app: Flask) -> None:
    missing = [name for name in REQUIRED_SETTINGS if not app.config.get(name)]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Refuse to start without token/password secrets
    _check_required_settings(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Secrets are bound once here; services never read the environment
    from .services.credential_service import CredentialStore
    from .services.mail_service import Mailer
    from .services.token_service import TokenService

    app.extensions["token_service"] = TokenService(
        app.config["TOKEN_SECRET"],
        default_ttl=timedelta(days=app.config["TOKEN_TTL_DAYS"]),
    )
    app.extensions["credential_store"] = CredentialStore(
        app.config["PASSWORD_SECRET"],
        rounds=app.config["BCRYPT_ROUNDS"],
    )
    app.extensions["mailer"] = Mailer(
        host=app.config["SMTP_HOST"],
        port=app.config["SMTP_PORT"],
        sender=app.config["MAIL_SENDER"],
        username=app.config["SMTP_USERNAME"],
        password=app.config["SMTP_PASSWORD"],
        suppress=app.config["MAIL_SUPPRESS_SEND"],
    )

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.verify import verify_bp
    from .routes.profiles import profiles_bp
    from .routes.products import products_bp, categories_bp, discounts_bp, reviews_bp
    from .routes.cart import cart_bp
    from .routes.addresses import addresses_bp
    from .routes.payments import payments_bp
    from .routes.orders import orders_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(verify_bp)
    app.register_blueprint(profiles_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(discounts_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(addresses_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(orders_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
