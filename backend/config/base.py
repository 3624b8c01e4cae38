from environs import Env

env = Env()


class BaseConfig:
    """Base configuration with security-first defaults"""

    ENVIRONMENT = env.str("FLASK_ENV", "development")
    DEBUG = False
    TESTING = False

    # Core settings; SECRET_KEY signs and verifies access tokens
    SECRET_KEY = env.str("SECRET_KEY", None)
    ALLOWED_ORIGINS = env.str(
        "ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    # Security headers (secure by default)
    STRICT_TRANSPORT_SECURITY = True
    STRICT_TRANSPORT_SECURITY_PRELOAD = True
    STRICT_TRANSPORT_SECURITY_MAX_AGE = 31536000  # 1 year
    STRICT_TRANSPORT_SECURITY_INCLUDE_SUBDOMAINS = True

    CONTENT_SECURITY_POLICY = {
        "default-src": "'self'",
        "img-src": "'self' data: https:",
        "connect-src": "'self'",
    }

    # Database
    MONGODB_URI = env.str("MONGODB_URI", "mongodb://localhost:27017/billing")
    MONGODB_SERVER_SELECTION_TIMEOUT_MS = env.int(
        "MONGODB_SERVER_SELECTION_TIMEOUT_MS", 30000
    )

    # Per-query server-side limit for bill lookups
    STORE_QUERY_TIMEOUT_MS = env.int("STORE_QUERY_TIMEOUT_MS", 5000)

    # Yearly case views resolve months concurrently
    YEARLY_AGGREGATE_WORKERS = env.int("YEARLY_AGGREGATE_WORKERS", 4)
    YEARLY_AGGREGATE_TIMEOUT_SECONDS = env.float("YEARLY_AGGREGATE_TIMEOUT_SECONDS", 30.0)

    # Rate limiting defaults (can be overridden)
    RATELIMIT_DEFAULT = "200 per minute"
    RATELIMIT_STORAGE_URI = env.str("RATELIMIT_STORAGE_URI", "memory://")
    OPEN_RATELIMIT = env.str("OPEN_RATELIMIT", "120 per minute")

    LOG_LEVEL = env.str("LOG_LEVEL", "INFO")

    @classmethod
    def configure_app(cls, app):
        """Configure Flask app with security headers"""

        @app.after_request
        def add_security_headers(response):
            if cls.STRICT_TRANSPORT_SECURITY:
                sts_header = f"max-age={cls.STRICT_TRANSPORT_SECURITY_MAX_AGE}"
                if cls.STRICT_TRANSPORT_SECURITY_INCLUDE_SUBDOMAINS:
                    sts_header += "; includeSubDomains"
                if cls.STRICT_TRANSPORT_SECURITY_PRELOAD:
                    sts_header += "; preload"
                response.headers["Strict-Transport-Security"] = sts_header

            csp_value = "; ".join(
                f"{key} {value}" for key, value in cls.CONTENT_SECURITY_POLICY.items()
            )
            response.headers["Content-Security-Policy"] = csp_value

            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "SAMEORIGIN"

            return response

    def __getitem__(self, key):
        return getattr(self, key)
