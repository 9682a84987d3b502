"""
File Manager Application Configuration

Uses pydantic-settings to load configuration from environment variables and .env file.
The settings object is built once at startup and handed to create_app(), which
passes it on to the storage gateway.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or a .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # S3 / MinIO Object Storage
    # =========================================================================
    AWS_ACCESS_KEY_ID: Optional[str] = None  # None falls back to the boto3 credential chain
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str = "file-manager-uploads"
    S3_ENDPOINT_URL: Optional[str] = None  # Set for MinIO, leave None for AWS S3

    # =========================================================================
    # Uploads
    # =========================================================================
    UPLOAD_PREFIX: str = "uploads/"
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024  # 10MB
    UPLOAD_BODY_OVERHEAD_BYTES: int = 64 * 1024  # Multipart framing allowed on top of the cap
    PRESIGNED_URL_EXPIRES_SECONDS: int = 3600  # 1 hour

    # =========================================================================
    # HTTP
    # =========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ORIGINS: str = "*"  # Comma-separated allowed origins

    # =========================================================================
    # Monitoring
    # =========================================================================
    SENTRY_DSN: Optional[str] = None  # Optional - disabled if not set

    # =========================================================================
    # Application
    # =========================================================================
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_RESPONSE_BODIES: bool = True

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
