"""
Runtime configuration for the study query service, read from the environment.
"""

import os
from typing import List

from pydantic import BaseModel


class Settings(BaseModel):
    """Service settings."""
    studies_api_base: str = "http://localhost:5000"
    studies_timeout: float = 10.0
    page_size: int = 20
    rate_limit_enabled: bool = True
    allowed_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]


def get_settings() -> Settings:
    """Build settings from environment variables, falling back to defaults."""
    defaults = Settings()
    origins = os.getenv("ALLOWED_ORIGINS")

    return Settings(
        studies_api_base=os.getenv("STUDIES_API_BASE", defaults.studies_api_base).rstrip("/"),
        studies_timeout=float(os.getenv("STUDIES_TIMEOUT", defaults.studies_timeout)),
        page_size=int(os.getenv("STUDIES_PAGE_SIZE", defaults.page_size)),
        rate_limit_enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no"),
        allowed_origins=origins.split(",") if origins else defaults.allowed_origins,
    )
