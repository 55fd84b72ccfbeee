"""Application configuration powered by pydantic-settings."""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized strongly-typed configuration loaded from `.env`."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PROJECT_NAME: str = "Full-stack Deploy Demo"
    PROJECT_VERSION: str = "1.0.0"

    HOST: str = "0.0.0.0"
    PORT: int = Field(4000, description="Listen port of the API service, overridable via the PORT env var")

    API_PREFIX: str = "/api"
    SERVER_MESSAGE: str = "Hello from chaicode server"

    ALLOWED_ORIGINS: List[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    # Edge router: static assets and the entry document used as fallback
    STATIC_DIR: str = "static"
    ENTRY_DOCUMENT: str = "index.html"

    # Interactive development context
    DEV_EDGE_PORT: int = 3000
    DEV_API_TARGET: str = "http://localhost:4000"

    # Packaged/deployed context; `backend` resolves through compose service discovery
    EDGE_PORT: int = 80
    EDGE_API_TARGET: str = "http://backend:4000"
    EDGE_HOST_PORT: int = Field(8080, description="Host port published for the edge router container")

    EDGE_GZIP_MINIMUM_SIZE: int = 500
    EDGE_PROXY_TIMEOUT_SECONDS: float = 60.0

    CLIENT_BASE_URL: str = "http://localhost:3000"


@lru_cache
def get_settings() -> Settings:
    """Cache and return a singleton Settings instance to avoid re-parsing env."""
    return Settings()


settings = get_settings()
