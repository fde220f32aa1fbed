"""
Configuration management.
Simple .env based config, mirrors the deployment environment.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: List[str] = ["*"]

    # Job timing (seconds)
    job_start_delay: float = 2.0
    item_delay: float = 1.0

    # Upstream APIs
    promodata_base_url: str = "https://api.promodata.com.au"
    woo_api_path: str = "/wp-json/wc/v3"
    request_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"


# Global settings instance
settings = Settings()
