import os
import sys

from flask import Flask, request, make_response
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from loguru import logger

from blueprints.bill_routes import create_bill_blueprint
from blueprints.company_routes import create_company_blueprint
from blueprints.misc_routes import create_misc_blueprint
from services.bill_service import BillService
from services.bill_store import BillStore
from services.company_service import CompanyService
from services.mongodb_service import connect_db


def get_config_class():
    """
    Determine which configuration class to use based on environment.
    """
    env = os.getenv("FLASK_ENV", "development")
    logger.info(f"App config is: {env}")
    if env == "development":
        from config.development import DevelopmentConfig

        return DevelopmentConfig
    elif env == "production":
        from config.production import ProductionConfig

        return ProductionConfig
    elif env == "testing":
        from config.test import TestConfig

        return TestConfig
    else:
        raise ValueError(f"Invalid FLASK_ENV: {env}")


def configure_logging(level: str):
    logger.remove()
    logger.add(sys.stderr, level=level)


def allowed_origins(config) -> list:
    origins = config.get("ALLOWED_ORIGINS") or []
    if isinstance(origins, str):
        origins = origins.split(",")
    return [origin.strip() for origin in origins if origin.strip()]


def register_cors(app):
    def normalize_origin(origin):
        """Normalize origin by removing 'www.' if present"""
        return origin.replace("www.", "")

    def is_allowed(origin):
        normalized_request_origin = normalize_origin(origin)
        return any(
            normalize_origin(allowed_origin) == normalized_request_origin
            for allowed_origin in allowed_origins(app.config)
        )

    @app.before_request
    def handle_preflight():
        if request.method == "OPTIONS":
            response = make_response()
            origin = request.headers.get("Origin")
            if origin and is_allowed(origin):
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Methods"] = (
                    "GET, POST, PUT, DELETE, OPTIONS"
                )
                response.headers["Access-Control-Allow-Headers"] = (
                    "Content-Type, Authorization, X-Requested-With"
                )
                response.headers["Access-Control-Allow-Credentials"] = "true"
                response.headers["Access-Control-Max-Age"] = "3600"
            return response

    @app.after_request
    def after_request(response):
        origin = request.headers.get("Origin")
        if origin and is_allowed(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Expose-Headers"] = (
                "Content-Type, Authorization"
            )
        return response


def create_services(config) -> dict:
    """Build the service registry from configuration."""
    bill_store = BillStore(query_timeout_ms=config.get("STORE_QUERY_TIMEOUT_MS", 5000))
    return {
        "bill_store": bill_store,
        "bill_service": BillService(
            bill_store,
            yearly_workers=config.get("YEARLY_AGGREGATE_WORKERS", 4),
            yearly_timeout=config.get("YEARLY_AGGREGATE_TIMEOUT_SECONDS"),
        ),
        "company_service": CompanyService(),
    }


def create_app(config_object=None, connect_database=True):
    """
    Application factory pattern.
    Args:
        config_object: Configuration class to use. If None, determines from environment.
        connect_database: Connect to MongoDB during start-up. Tests connect
            their own mongomock client instead.
    """
    app = Flask(__name__)

    # Load environment-specific config
    if config_object is None:
        config_object = get_config_class()

    # Apply configuration
    app.config.from_object(config_object)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    if hasattr(config_object, "configure_app"):
        config_object.configure_app(app)

    register_cors(app)

    limiter = Limiter(
        get_remote_address,
        app=app,
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        strategy="fixed-window",
    )
    # Route decorators hold only a weak proxy; a disabled limiter is not kept by flask-limiter
    app.extensions["rate_limiter"] = limiter

    if connect_database:
        connect_db(app)

    # Create a service registry
    app.extensions["services"] = create_services(app.config)

    # Register blueprints with explicitly injected services
    app.register_blueprint(create_misc_blueprint())
    app.register_blueprint(
        create_bill_blueprint(app.extensions["services"]["bill_service"], limiter)
    )
    app.register_blueprint(
        create_company_blueprint(app.extensions["services"]["company_service"])
    )

    logger.info(f"Billing API created ({app.config.get('ENVIRONMENT', 'unknown')})")
    return app
