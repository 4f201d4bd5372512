"""Application configuration via environment variables."""

from pathlib import Path
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = "sqlite:///./journal.db"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]  # Vite dev server

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440  # 24 hours
    jwt_issuer: str = "trading-journal"
    max_failed_logins: int = 5

    # Persistence calls slower than this surface as PersistenceFailure
    persistence_timeout_seconds: float = 5.0

    default_currency: str = "USD"

    model_config = {"env_prefix": "TJ_", "env_file": ".env"}


settings = Settings()
