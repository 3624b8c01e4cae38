from environs import Env

_env = Env()


class TestConfig:
    """Test configuration; the unit suite swaps MongoDB for mongomock"""

    TESTING = True
    DEBUG = False

    # Core settings
    FLASK_ENV = _env.str("FLASK_ENV", default="testing")
    SECRET_KEY = _env.str("TEST_SECRET_KEY", default="test_secret_key")

    # Database settings
    MONGODB_URI = _env.str("TEST_MONGODB_URI", default="mongodb://localhost:27017/test_db")
    MONGODB_SERVER_SELECTION_TIMEOUT_MS = 2000

    STORE_QUERY_TIMEOUT_MS = 2000
    YEARLY_AGGREGATE_WORKERS = 4
    YEARLY_AGGREGATE_TIMEOUT_SECONDS = 10.0

    # Rate limiting disabled so tests can hammer the open endpoints
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = "memory://"
    OPEN_RATELIMIT = "1000 per minute"

    LOG_LEVEL = "DEBUG"

    # CORS
    ALLOWED_ORIGINS = _env.list(
        "ALLOWED_ORIGINS",
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
    )

    def __getitem__(self, key):
        return getattr(self, key)
