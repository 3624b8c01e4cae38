from environs import Env
from .base import BaseConfig

env = Env()


class DevelopmentConfig(BaseConfig):
    """Local development against a MongoDB on localhost"""

    ENVIRONMENT = "development"
    DEBUG = True

    SECRET_KEY = env.str("SECRET_KEY", "dev_secret_key")
    MONGODB_URI = env.str("MONGODB_URI", "mongodb://localhost:27017/billing_dev")

    # Security headers off for plain-http local work
    STRICT_TRANSPORT_SECURITY = False

    LOG_LEVEL = env.str("LOG_LEVEL", "DEBUG")
