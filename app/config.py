"""
Application configuration management.
"""

from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hosted backend (record store, auth, blob storage)
    supabase_url: str
    supabase_anon_key: str

    # Record store
    errors_table: str = "errors"
    profiles_table: str = "profiles"

    # Blob store
    image_bucket: str = "error-images"

    # HTTP
    http_timeout_seconds: float = 30.0
    cors_origins: List[str] = ["*"]

    # Export
    export_date_format: str = "%Y-%m-%d"
    report_title: str = "Error Report - ErrorTracker"

    # Application
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
