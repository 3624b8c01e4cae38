from environs import Env
from .base import BaseConfig

env = Env()


class ProductionConfig(BaseConfig):
    """Production configuration focused on security and reliability"""

    ENVIRONMENT = "production"
    DEBUG = False
    TESTING = False

    # Required in production, no fallback
    SECRET_KEY = env.str("SECRET_KEY")
    MONGODB_URI = env.str("MONGODB_URI")

    # Force SSL
    PREFERRED_URL_SCHEME = "https"

    # Rate limiting (more strict in production)
    RATELIMIT_DEFAULT = "100 per minute"
    OPEN_RATELIMIT = env.str("OPEN_RATELIMIT", "60 per minute")

    # Session configuration
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Additional production-specific settings
    PRESERVE_CONTEXT_ON_EXCEPTION = False
    PROPAGATE_EXCEPTIONS = True
