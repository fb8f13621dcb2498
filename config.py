import os
from dotenv import load_dotenv
from datetime import timedelta

# Load .env only for local/dev convenience. In production env vars come from the host.
load_dotenv()

def _normalized_db_url(raw: str | None) -> str | None:
    if not raw:
        return None
    # SQLAlchemy prefers postgresql://, some providers give postgres://
    if raw.startswith("postgres://"):
        raw = raw.replace("postgres://", "postgresql://", 1)
    return raw

class BaseConfig:
    # --- Secrets & keys ---
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key")  # override in production
    CRON_SECRET = os.environ.get("CRON_SECRET", "")

    # --- Database ---
    SQLALCHEMY_DATABASE_URI = _normalized_db_url(os.environ.get("DATABASE_URL"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Keep DB connections healthy on platforms with aggressive TCP timeouts
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # --- Sessions / Cookies ---
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    # --- Cache (Flask-Caching) ---
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "SimpleCache")
    CACHE_REDIS_URL = os.environ.get("REDIS_URL")
    CACHE_DEFAULT_TIMEOUT = int(os.environ.get("CACHE_DEFAULT_TIMEOUT", 900))
    # dashboard/aim payloads live 15 minutes
    STATS_CACHE_TTL = int(os.environ.get("STATS_CACHE_TTL", 900))

    # --- Stats ---
    DEFAULT_PAST_MATCH_COUNT = int(os.environ.get("DEFAULT_PAST_MATCH_COUNT", 10))
    MAX_PAST_MATCH_COUNT = 100

    # --- Clan leaderboards ---
    LEADERBOARD_PERIOD_DAYS = {"week": 7, "month": 30}
    LEADERBOARD_MIN_MEMBERS = 2
    DISCORD_EMBED_LIMIT = 10

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # If no DB URL provided locally, fall back to a SQLite file so the app still boots
    if BaseConfig.SQLALCHEMY_DATABASE_URI is None:
        SQLALCHEMY_DATABASE_URI = "sqlite:///dev.db"
    SESSION_COOKIE_SECURE = False

class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CACHE_TYPE = "SimpleCache"
    CRON_SECRET = "test-cron-secret"
    SECRET_KEY = "test-key"

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    PREFERRED_URL_SCHEME = "https"

def get_config():
    """Choose config based on FLASK_ENV (or APP_ENV). Default to Production."""
    env = (os.environ.get("APP_ENV") or os.environ.get("FLASK_ENV") or "production").lower()
    if env.startswith("dev"):
        return DevelopmentConfig
    if env.startswith("test"):
        return TestingConfig
    return ProductionConfig
