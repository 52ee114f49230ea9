"""Storage configuration for S3-compatible object storage.

Builds the adapter configuration from application settings.
Supports both MinIO (development) and AWS S3 (production) with the same interface.
"""

from dataclasses import dataclass
from typing import Optional

from config import Settings, get_settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL (e.g., 'http://localhost:9000' for MinIO,
                      None for AWS S3 which uses default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        bucket_name: S3 bucket name for content files and attachments
        region: AWS region (default: 'us-east-1')
        use_ssl: Whether to use HTTPS (True for production, False for local MinIO)
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    bucket_name: str
    region: str = "us-east-1"
    use_ssl: bool = True


def load_storage_config(settings: Optional[Settings] = None) -> StorageConfig:
    """Build storage configuration from settings.

    Settings used:
        MINIO_ENDPOINT: MinIO endpoint (e.g., 'localhost:9000');
                        unset means AWS S3 with default regional endpoints
        MINIO_ROOT_USER / MINIO_ROOT_PASSWORD: Credentials (required)
        MINIO_BUCKET: Bucket name (default: 'kmf-documents')
        MINIO_USE_SSL: Defaults to false with an endpoint, true for AWS S3
        AWS_REGION: AWS region (default: 'us-east-1')

    Raises:
        ValueError: If credentials are missing
    """
    settings = settings or get_settings()

    use_ssl = settings.MINIO_USE_SSL
    if use_ssl is None:
        use_ssl = not settings.MINIO_ENDPOINT

    endpoint_url = None
    if settings.MINIO_ENDPOINT:
        protocol = "https" if use_ssl else "http"
        endpoint_url = f"{protocol}://{settings.MINIO_ENDPOINT}"

    if not settings.MINIO_ROOT_USER or not settings.MINIO_ROOT_PASSWORD:
        raise ValueError(
            "Missing required storage credentials. "
            "Set MINIO_ROOT_USER and MINIO_ROOT_PASSWORD environment variables. "
            "For MinIO: use 'minioadmin' for both in development. "
            "For AWS S3: use your IAM credentials."
        )

    return StorageConfig(
        endpoint_url=endpoint_url,
        access_key=settings.MINIO_ROOT_USER,
        secret_key=settings.MINIO_ROOT_PASSWORD,
        bucket_name=settings.MINIO_BUCKET,
        region=settings.AWS_REGION,
        use_ssl=use_ssl,
    )
