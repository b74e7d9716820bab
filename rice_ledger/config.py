from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (or a .env file).
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Rice Ledger"
    APP_VERSION: str = "1.0.0"

    DATABASE_URL: str = "sqlite:///./rice_ledger.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    LOG_LEVEL: str = "INFO"

    # Retries for lock conflicts and deadlocks at the storage layer
    LOCK_RETRY_ATTEMPTS: int = 3
    LOCK_RETRY_BACKOFF: float = 0.1


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
