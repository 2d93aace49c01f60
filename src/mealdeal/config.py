"""Application configuration using pydantic-settings."""

from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost/mealdeal"

    # Redis (Celery broker)
    redis_url: str = "redis://localhost:6379/0"

    # Pricing
    pricing_timezone: str = "Europe/Berlin"  # offer validity is judged on this calendar
    listing_default_limit: int = 50

    # Admin / CSV import
    admin_api_token: str = ""  # empty disables the admin surface
    import_max_errors: int = 50

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def sync_database_url(self) -> str:
        """Database URL for the synchronous driver (imports, Celery)."""
        return (
            make_url(self.database_url)
            .set(drivername="postgresql+psycopg2")
            .render_as_string(hide_password=False)
        )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def origins(self) -> list[str]:
        """CORS origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def today(self) -> date:
        """Current calendar date in the pricing timezone."""
        return datetime.now(ZoneInfo(self.pricing_timezone)).date()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
