"""
Application settings.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Flat order collection + capture snapshots
    DATABASE_URL: str = "sqlite:///./data/wrapped.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # File storage
    DATA_DIR: str = "./data"

    # Parsing
    PLATFORM_DOMAIN_MARKER: str = "doordash"

    # Statistics: histograms are bucketed in this zone
    STATS_TIMEZONE: str = "UTC"

    # Capture pagination
    DEFAULT_PAGE_LIMIT: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
