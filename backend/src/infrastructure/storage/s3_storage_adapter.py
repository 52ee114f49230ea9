"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Provides S3-compatible storage operations for AWS S3, MinIO, and other
S3-compatible services, with per-org SHA256 deduplication.
"""

import hashlib
import logging
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from domain.documents.ports.object_storage_port import (
    ObjectStoragePort,
    StoredFile,
)

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


def hash_stream(file: BinaryIO) -> tuple[bytes, str]:
    """Read a stream fully, returning its content and SHA256 hex digest"""
    sha256_hash = hashlib.sha256()
    chunks = []
    while True:
        chunk = file.read(_CHUNK_SIZE)
        if not chunk:
            break
        sha256_hash.update(chunk)
        chunks.append(chunk)
    return b"".join(chunks), sha256_hash.hexdigest()


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


def build_storage_key(org_id: str, sha256: str, filename: str) -> str:
    """Storage key in format: {org_id}/{year}/{month}/{sha256}{ext}

    Example:
        >>> build_storage_key('acme', 'abc123', 'audit.pdf')  # doctest: +SKIP
        'acme/2026/10/abc123.pdf'
    """
    now = datetime.now(timezone.utc)
    ext = Path(filename).suffix.lower() if filename else ""
    return f"{org_id}/{now.year}/{now.month:02d}/{sha256}{ext}"


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Example:
        config = load_storage_config()
        storage = S3StorageAdapter(
            endpoint_url=config.endpoint_url,
            access_key=config.access_key,
            secret_key=config.secret_key,
            bucket_name=config.bucket_name,
            region=config.region,
        )
    """

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        bucket_name: str,
        region: str = "us-east-1",
    ):
        """Initialize S3 storage adapter.

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
            self.bucket_name = bucket_name
            self.region = region

            logger.info(
                f"Initialized S3 storage adapter: bucket={bucket_name}, "
                f"endpoint={endpoint_url or 'AWS S3'}, region={region}"
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

    def store_file(
        self,
        file: BinaryIO,
        org_id: str,
        filename: str,
        mime_type: str,
    ) -> StoredFile:
        """Store a file in S3 with automatic deduplication.

        Raises:
            StorageError: If upload fails
            ValueError: If file is empty
        """
        content, sha256_hex = hash_stream(file)
        size_bytes = len(content)

        if size_bytes == 0:
            raise ValueError("Cannot store empty file")

        storage_key = build_storage_key(org_id, sha256_hex, filename)
        stored = StoredFile(
            storage_key=storage_key,
            sha256=sha256_hex,
            size_bytes=size_bytes,
            mime_type=mime_type,
        )

        if self.file_exists(storage_key):
            logger.info(
                f"File already exists (dedup): storage_key={storage_key}, "
                f"size={size_bytes}"
            )
            return stored

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=storage_key,
                Body=BytesIO(content),
                ContentType=mime_type,
                Metadata={
                    "sha256": sha256_hex,
                    "original_filename": filename,
                    "org_id": org_id,
                },
            )
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(
                f"S3 upload failed: storage_key={storage_key}, "
                f"error={error_code}, message={e}"
            )
            raise StorageError(f"Failed to upload file: {error_code}")

        logger.info(
            f"Uploaded file: storage_key={storage_key}, "
            f"size={size_bytes}, mime_type={mime_type}"
        )
        return stored

    def retrieve_file(self, storage_key: str) -> BinaryIO:
        """Retrieve a file from S3 (caller must close the stream).

        Raises:
            FileNotFoundError: If file doesn't exist
            StorageError: If retrieval fails
        """
        try:
            response = self.s3_client.get_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in ("NoSuchKey", "404"):
                logger.warning(f"File not found: storage_key={storage_key}")
                raise FileNotFoundError(f"File not found: {storage_key}")
            logger.error(
                f"S3 retrieval failed: storage_key={storage_key}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to retrieve file: {error_code}")

        logger.info(f"Retrieved file: storage_key={storage_key}")
        return response["Body"]

    def delete_file(self, storage_key: str) -> bool:
        """Delete a file from S3; False if it didn't exist.

        Raises:
            StorageError: If deletion fails
        """
        if not self.file_exists(storage_key):
            logger.info(f"File not found for deletion: storage_key={storage_key}")
            return False

        try:
            self.s3_client.delete_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
        except ClientError as e:
            error_code = _error_code(e)
            logger.error(
                f"S3 deletion failed: storage_key={storage_key}, "
                f"error={error_code}"
            )
            raise StorageError(f"Failed to delete file: {error_code}")

        logger.info(f"Deleted file: storage_key={storage_key}")
        return True

    def file_exists(self, storage_key: str) -> bool:
        """Check if a file exists in S3 (HEAD request)."""
        try:
            self.s3_client.head_object(
                Bucket=self.bucket_name,
                Key=storage_key,
            )
            return True
        except ClientError as e:
            error_code = _error_code(e)
            if error_code in ("404", "NoSuchKey"):
                return False
            logger.warning(f"HEAD failed, treating as missing: key={storage_key}, code={error_code}")
            return False

    def verify_bucket_exists(self) -> bool:
        """Verify that the configured bucket exists.

        Raises:
            StorageError: If bucket check fails or bucket doesn't exist
        """
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            return True
        except ClientError as e:
            error_code = _error_code(e)
            if error_code == "404":
                raise StorageError(
                    f"Bucket '{self.bucket_name}' does not exist. "
                    f"Create it first or update MINIO_BUCKET environment variable."
                )
            raise StorageError(f"Failed to verify bucket: {error_code}")

    def ping(self) -> None:
        self.verify_bucket_exists()
