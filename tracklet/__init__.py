from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix
from marshmallow import ValidationError
from flask_smorest import Api
from flask_limiter.errors import RateLimitExceeded

from .utils.extensions import limiter
from .extensions import db, redis_connection, cors
# indexes
from .services.stock.store import setup_indexes as setup_stock_indexes
from .services.rate_service import setup_indexes as setup_rate_indexes

from .config import load_config
from .routes import register_routes
from .utils.error_handlers import (
    handle_permission_error, handle_validation_error, handle_type_error,
    handle_rate_limit
)
from .utils.logger import Log


def create_app(config_name=None, mongo_client=None):
    """
    Build the stock API.

    Args:
        config_name: development / testing / production, defaults to APP_ENV
        mongo_client: Optional pre-built client (tests pass a mongomock client)
    """
    app = Flask(__name__)

    # get actual client IP
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_for=1,      # Trust X-Forwarded-For
        x_proto=1,    # Trust X-Forwarded-Proto
        x_host=1,     # Trust X-Forwarded-Host
        x_port=1,     # Trust X-Forwarded-Port
        x_prefix=1    # Trust X-Forwarded-Prefix
    )

    # Sets the Flask-Smorest keys as well
    config_name = load_config(app, config_name)

    api = Api(app)
    api.spec.components.security_scheme(
        "Bearer", {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    )

    # Initialize all extensions
    db.init_app(app, client=mongo_client)
    redis_connection.init_app(app)
    cors.init_app(app, origins=app.config["ALLOWED_ORIGINS"])
    limiter.init_app(app)

    if app.config.get("MONGO_SETUP_INDEXES"):
        with app.app_context():
            setup_stock_indexes()
            setup_rate_indexes()

    # Register custom error handlers
    app.errorhandler(PermissionError)(handle_permission_error)
    app.errorhandler(ValidationError)(handle_validation_error)
    app.errorhandler(TypeError)(handle_type_error)
    app.errorhandler(RateLimitExceeded)(handle_rate_limit)

    # Register all blueprints using `api.register_blueprint(...)`
    register_routes(app, api)

    Log.info(f"[__init__.py][create_app] {app.config['APP_NAME']} started ({config_name})")
    return app
