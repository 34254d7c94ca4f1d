from pydantic_settings import BaseSettings
from pydantic import ConfigDict, field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings loaded from environment.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # HTTP server
    APP_NAME: str = "Sample API"
    APP_DESCRIPTION: str = "CRUD API for agents, companies, customers and orders"
    APP_HOST: str = "localhost"
    APP_PORT: int = 3000
    API_DOCS_URL: str = "/api-docs"

    # Database configuration
    DB_DRIVER: str = "mysql+aiomysql"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_NAME: str = "sample"

    # Full SQLAlchemy URL; takes precedence over the DB_* parts when set
    DB_URL: str | None = None

    # Connection pool
    DB_CONNECTION_LIMIT: int = 5
    DB_POOL_TIMEOUT: float = 30.0
    DB_CREATE_TABLES: bool = False

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/agency-api")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    LOG_USE_QUEUE: bool = False
    LOG_QUEUE_MAX_SIZE: int = 0  # 0 = unbounded
    LOG_QUEUE_BLOCKING: bool = False
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL the engine should connect to.

        `DB_URL` wins when provided (useful for SQLite in development and tests);
        otherwise the URL is assembled from the individual DB_* settings. The
        password is rendered in clear text because the engine needs it.
        """
        if self.DB_URL:
            return self.DB_URL

        return URL.create(
            self.DB_DRIVER,
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        ).render_as_string(hide_password=False)

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to uppercase; the logging module expects "DEBUG", "INFO", ...
        """
        return v.upper() if isinstance(v, str) else v

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        return v.lower() if isinstance(v, str) else v

    @field_validator("DB_CONNECTION_LIMIT")
    def check_connection_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("DB_CONNECTION_LIMIT must be at least 1")
        return v

    model_config = ConfigDict(
        # .env next to the package root (src/agency_api/.env)
        env_file=str(Path(__file__).parent.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Settings never change for the lifetime of the process, so build them once.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
