"""
Environment-aware configuration.
Token secrets and lifetimes live here and are handed to the TokenCodec as an
explicit TokenConfig by create_app(); nothing else reads them from the env.
Database URL is handled by DBStorage.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

_DEV_ACCESS_SECRET = "dev-access-secret-change-me-0123456789abcdef"
_DEV_REFRESH_SECRET = "dev-refresh-secret-change-me-0123456789abcdef"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    # Keep a copy of env for visibility
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # token configuration: two independent secrets and lifetimes
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", _DEV_ACCESS_SECRET)
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", _DEV_REFRESH_SECRET)
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "864000")))
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "session-auth-api")

    # session cookies
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", True)
    AUTH_COOKIE_SAMESITE = os.getenv("AUTH_COOKIE_SAMESITE", "Strict")

    # uploads
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    TESTING = True
    AUTH_COOKIE_SECURE = False
    ACCESS_TOKEN_SECRET = "test-access-secret-0123456789abcdef0123456789"
    REFRESH_TOKEN_SECRET = "test-refresh-secret-0123456789abcdef012345678"


class ProductionConfig(BaseConfig):
    DEBUG = False

    @classmethod
    def validate(cls):
        if cls.ACCESS_TOKEN_SECRET == _DEV_ACCESS_SECRET or cls.REFRESH_TOKEN_SECRET == _DEV_REFRESH_SECRET:
            raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be set in production")
        if cls.ACCESS_TOKEN_SECRET == cls.REFRESH_TOKEN_SECRET:
            raise RuntimeError("access and refresh tokens must use different secrets")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        ProductionConfig.validate()
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
