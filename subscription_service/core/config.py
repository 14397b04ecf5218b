"""
Application configuration loaded from environment variables.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Subscription service configuration."""

    # .env in the working directory wins over one in the parent directory
    model_config = SettingsConfigDict(env_file=("../.env", ".env"), extra="ignore")

    # Environment
    app_env: str = "dev"
    log_level: str = "info"

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_pass: str = "postgres"
    db_name: str = "subscriptions"
    database_url: Optional[str] = None

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    debug: bool = False

    @property
    def sqlalchemy_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_pass}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def log_format(self) -> Literal["json", "text"]:
        return "json" if self.app_env == "prod" else "text"


@lru_cache
def get_settings() -> Settings:
    return Settings()
