"""Application configuration via environment variables.

Provides type-safe settings loading using pydantic-settings.
Environment variables can be loaded from a .env file.
"""

from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set JWT_SECRET and the storage credentials.

    Environment Variables:
        DATABASE_URL: SQLAlchemy connection string
        JWT_SECRET: HS256 signing key for bearer tokens
        CELERY_BROKER_URL: Broker for async document processing
        CELERY_TASK_ALWAYS_EAGER: Run Celery tasks inline (tests, local dev)
        MINIO_ENDPOINT: S3-compatible endpoint (unset for AWS S3)
        MAX_UPLOAD_SIZE_BYTES: Largest accepted content file
        ASYNC_UPLOAD_THRESHOLD_BYTES: Files above this size are stored asynchronously
        LOG_LEVEL: Logging level (default INFO)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./kmf_documents.db"
    AUTO_CREATE_TABLES: bool = True

    # Security
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 60

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Object Storage (S3/MinIO)
    MINIO_ENDPOINT: Optional[str] = None
    MINIO_ROOT_USER: Optional[str] = None
    MINIO_ROOT_PASSWORD: Optional[str] = None
    MINIO_BUCKET: str = "kmf-documents"
    MINIO_USE_SSL: Optional[bool] = None
    AWS_REGION: str = "us-east-1"

    # Uploads
    MAX_UPLOAD_SIZE_BYTES: int = 20 * 1024 * 1024
    ASYNC_UPLOAD_THRESHOLD_BYTES: int = 5 * 1024 * 1024

    # Application
    API_BASE_PATH: str = "/kmf/api/documents/v1"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache for singleton behavior.
    Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
