"""Object Storage Port - Domain interface for S3-compatible storage.

This port defines the contract for storing and retrieving content files and
attachments. Adapters implement it for S3, MinIO, or other storage backends.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO


@dataclass
class StoredFile:
    """Metadata for a file stored in object storage.

    Attributes:
        storage_key: Unique key in object storage (format: {org_id}/{year}/{month}/{sha256}.{ext})
        sha256: SHA256 hash of file content (hex format)
        size_bytes: File size in bytes
        mime_type: MIME type of the file (e.g., 'application/pdf')
    """
    storage_key: str
    sha256: str
    size_bytes: int
    mime_type: str


class ObjectStoragePort(ABC):
    """Port interface for S3-compatible object storage operations.

    Key Design Principles:
    - Storage keys start with the owning org_id
    - SHA256 calculated during upload for deduplication and integrity
    - Idempotent operations (store_file returns existing if duplicate)

    Example Usage:
        storage = S3StorageAdapter(...)

        with open('certificate.pdf', 'rb') as f:
            stored = storage.store_file(
                file=f,
                org_id='acme',
                filename='certificate.pdf',
                mime_type='application/pdf'
            )

        file_stream = storage.retrieve_file(stored.storage_key)
    """

    @abstractmethod
    def store_file(
        self,
        file: BinaryIO,
        org_id: str,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Store a file in object storage with automatic deduplication.

        This method:
        1. Calculates SHA256 hash while reading the file
        2. Generates storage key: {org_id}/{year}/{month}/{sha256}.{ext}
        3. If a file with that key exists: returns it (deduplication)
        4. Otherwise uploads the file

        Args:
            file: Binary file stream to store (must be readable)
            org_id: Owning organization (prefix of the storage key)
            filename: Original filename (for extension extraction)
            mime_type: MIME type of the file

        Returns:
            StoredFile: Metadata about stored file

        Raises:
            StorageError: If upload fails or storage is unavailable
            ValueError: If file is empty
        """
        pass

    @abstractmethod
    def retrieve_file(self, storage_key: str) -> BinaryIO:
        """Retrieve a file by its storage key.

        Raises:
            FileNotFoundError: If file doesn't exist in storage
            StorageError: If retrieval fails

        Note:
            Caller is responsible for closing the returned stream.
        """
        pass

    @abstractmethod
    def delete_file(self, storage_key: str) -> bool:
        """Delete a file; returns False if it didn't exist.

        Raises:
            StorageError: If deletion fails
        """
        pass

    @abstractmethod
    def file_exists(self, storage_key: str) -> bool:
        """Check if a file exists in object storage."""
        pass

    def ping(self) -> None:
        """Raise if the storage backend is unreachable (used by health checks)."""
        return None
