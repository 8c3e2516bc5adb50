"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "tripflow"
    postgres_password: str = "tripflow_dev_password"
    postgres_db: str = "tripflow"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    db_pool_size: int = 10
    db_max_overflow: int = 20
    sql_echo: bool = False

    # API
    api_port: int = 8000
    api_host: str = "0.0.0.0"
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Check-in codes
    event_code_length: int = 8  # primary code printed on badges
    scan_code_min_length: int = 6
    scan_code_max_length: int = 10

    # Participant tables
    table_page_size_default: int = 50
    table_page_size_max: int = 200

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"

    def validate_production_settings(self):
        """Validate settings for production environment."""
        env = self.environment.lower()
        if env not in ("development", "test", "dev"):
            if self.database_url_computed.startswith("sqlite"):
                raise ValueError(
                    "SQLite is not allowed outside development and test. "
                    "Check-in deduplication relies on PostgreSQL unique indexes under concurrent load."
                )
            if self.postgres_password == "tripflow_dev_password" and not self.database_url:
                raise ValueError(
                    "POSTGRES_PASSWORD must be set in production. "
                    "Do not use the development default."
                )
        if self.scan_code_min_length > self.scan_code_max_length:
            raise ValueError("SCAN_CODE_MIN_LENGTH cannot exceed SCAN_CODE_MAX_LENGTH.")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
