# imagemeta/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,  # Environment vars are uppercase
        extra="ignore",      # Ignore unexpected vars instead of raising
    )

    # Core application settings
    DATABASE_URL: str
    HOST: str = "0.0.0.0"
    PORT: int = 8101
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_FILE: str = "imagemeta.log"
    AUTO_CREATE_TABLES: bool | None = None  # None -> on everywhere except production

    # CORS settings
    ALLOWED_ORIGINS: list[str] = ["*"]  # In production, specify actual origins
    ALLOW_CREDENTIALS: bool = True
    ALLOWED_METHODS: list[str] = ["*"]
    ALLOWED_HEADERS: list[str] = ["*"]

    # Identity provider JWT settings
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    ADMIN_USER_IDS: list[str] = []
    ADMIN_ROLE_CLAIM: str = "role"
    ADMIN_ROLE: str = "admin"

    # Usage ledger settings
    USAGE_WINDOW_DAYS: int = 30
    USER_ID_PREFIX: str = "user_"
    DEFAULT_USER_ID: str = "default_user"
    ENABLE_SAMPLE_USAGE: bool = False  # development only

    # Billing settings
    STRIPE_SECRET_KEY: str | None = None
    FREE_USER_LIMIT: int = 100


def _normalize_settings(settings: Settings) -> None:
    """Fill in defaults that depend on other settings."""
    if settings.AUTO_CREATE_TABLES is None:
        settings.AUTO_CREATE_TABLES = settings.ENVIRONMENT != "production"


def _validate_settings(settings: Settings) -> None:
    """Validate critical application settings."""
    if not settings.DATABASE_URL:
        raise ValueError("DATABASE_URL is required")
    if not settings.JWT_SECRET:
        raise ValueError("JWT_SECRET is required")
    if settings.USAGE_WINDOW_DAYS <= 0:
        raise ValueError("USAGE_WINDOW_DAYS must be positive")
    if not settings.DEFAULT_USER_ID:
        raise ValueError("DEFAULT_USER_ID must not be empty")

    # Environment-specific validations
    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        print("WARNING: DEBUG is enabled in production. Consider setting DEBUG=False.")
    # Sample usage fabricates records; never allow it against real customers
    if settings.ENVIRONMENT == "production" and settings.ENABLE_SAMPLE_USAGE:
        raise ValueError("ENABLE_SAMPLE_USAGE cannot be enabled in production")


# Initialize settings with error handling
try:
    settings = Settings()
    _normalize_settings(settings)
    _validate_settings(settings)
except Exception as e:
    print(f"Error initializing settings: {e}")
    raise
