import os


def _env_flag(name, default=""):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Stripe (card charges) ---
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_PUBLISHABLE_KEY = os.environ.get("STRIPE_PUBLISHABLE_KEY")
    DONATION_CURRENCY = os.environ.get("DONATION_CURRENCY", "usd")
    DONATION_DESCRIPTION = os.environ.get("DONATION_DESCRIPTION", "Custom donation")

    # --- Lob (postcards) ---
    LOB_API_KEY = os.environ.get("LOB_API_KEY")
    LOB_API_BASE_URL = os.environ.get("LOB_API_BASE_URL", "https://api.lob.com/v1")

    # Front template per whole-unit donation amount, plus the shared back.
    TEMPLATE_FRONT_10 = os.environ.get("TEMPLATE_FRONT_10")
    TEMPLATE_FRONT_20 = os.environ.get("TEMPLATE_FRONT_20")
    TEMPLATE_FRONT_50 = os.environ.get("TEMPLATE_FRONT_50")
    TEMPLATE_FRONT_DEFAULT = os.environ.get("TEMPLATE_FRONT_DEFAULT")  # optional
    TEMPLATE_BACK = os.environ.get("TEMPLATE_BACK")

    # When False the postcard job runs inline in the request (tests, CLI).
    POSTCARD_DISPATCH_ASYNC = not _env_flag("POSTCARD_DISPATCH_INLINE")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # --- Session / cookies ---
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # --- WTF / CSRF ---
    WTF_CSRF_ENABLED = True

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "SECRET_KEY",
            "DATABASE_URL",
            "STRIPE_SECRET_KEY",
            "STRIPE_PUBLISHABLE_KEY",
            "LOB_API_KEY",
            "TEMPLATE_FRONT_10",
            "TEMPLATE_FRONT_20",
            "TEMPLATE_FRONT_50",
            "TEMPLATE_BACK",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SESSION_COOKIE_SECURE = False


class TestConfig(Config):
    """Testing: in-memory SQLite, CSRF disabled, postcard job inline."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    STRIPE_SECRET_KEY = "sk_test_fake"
    STRIPE_PUBLISHABLE_KEY = "pk_test_fake"
    DONATION_CURRENCY = "usd"
    DONATION_DESCRIPTION = "Custom donation"
    LOB_API_KEY = "test_lob_fake"
    LOB_API_BASE_URL = "https://api.lob.com/v1"
    TEMPLATE_FRONT_10 = "tmpl_front_10"
    TEMPLATE_FRONT_20 = "tmpl_front_20"
    TEMPLATE_FRONT_50 = "tmpl_front_50"
    TEMPLATE_FRONT_DEFAULT = None  # override per-test as needed
    TEMPLATE_BACK = "tmpl_back"
    POSTCARD_DISPATCH_ASYNC = False  # in-memory SQLite is not shared across threads
    WTF_CSRF_ENABLED = False  # disable CSRF for test forms
    RATELIMIT_ENABLED = True  # limiter storage is reset before each test
    SESSION_COOKIE_SECURE = False
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode, everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False
    SESSION_COOKIE_SECURE = True


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
