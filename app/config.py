"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.object_schedule import LoadFailurePolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./object_history.db"

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Scheduled mutations
    load_failure_policy: LoadFailurePolicy = LoadFailurePolicy.ABORT

    # Routes
    slug_max_attempts: int = 100


settings = Settings()
