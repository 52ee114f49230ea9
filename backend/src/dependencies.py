"""Global FastAPI dependencies for object storage and access resolution.

This module provides:
- get_storage_adapter: Object storage singleton (S3/MinIO)
- get_traceable_element_index: Per-request org traceable-element index

The storage singleton is also used by Celery workers, which run outside
the request cycle.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from domain.documents.ports.object_storage_port import ObjectStoragePort
from infrastructure.repositories.traceable_element_repository import SqlTraceableElementIndex
from infrastructure.storage.s3_storage_adapter import S3StorageAdapter
from infrastructure.storage.storage_config import load_storage_config

logger = logging.getLogger(__name__)


# Storage adapter singleton (initialized once)
_storage_adapter: Optional[ObjectStoragePort] = None


def build_storage_adapter() -> ObjectStoragePort:
    """Create the S3 adapter from settings.

    Raises:
        ValueError: If storage credentials are not configured
    """
    config = load_storage_config()
    return S3StorageAdapter(
        endpoint_url=config.endpoint_url,
        access_key=config.access_key,
        secret_key=config.secret_key,
        bucket_name=config.bucket_name,
        region=config.region,
    )


def get_optional_storage_adapter() -> Optional[ObjectStoragePort]:
    """Get or create the storage adapter singleton; None if misconfigured."""
    global _storage_adapter

    if _storage_adapter is None:
        try:
            _storage_adapter = build_storage_adapter()
            logger.info("Initialized storage adapter")
        except Exception as e:
            logger.error(f"Failed to initialize storage adapter: {e}")
            return None

    return _storage_adapter


def get_storage_adapter() -> ObjectStoragePort:
    """Get or create storage adapter singleton.

    Raises:
        HTTPException 500: If storage configuration is invalid
    """
    storage = get_optional_storage_adapter()
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Object storage is not configured",
        )
    return storage


def set_storage_adapter(storage: Optional[ObjectStoragePort]) -> None:
    """Replace the storage singleton (None resets it to lazy initialization)."""
    global _storage_adapter
    _storage_adapter = storage


def get_traceable_element_index(db: Session = Depends(get_db)) -> SqlTraceableElementIndex:
    """Traceable-element index bound to the request's session."""
    return SqlTraceableElementIndex(db)
