"""Unit tests for the S3 storage adapter using moto

Tests cover store, retrieve, delete and exists, per-org deduplication,
storage key layout, bucket verification and storage configuration.
"""

import hashlib
import io
from datetime import datetime, timezone

import boto3
import pytest
from moto import mock_aws

from config import Settings
from domain.documents.ports.object_storage_port import StoredFile
from infrastructure.storage.s3_storage_adapter import (
    S3StorageAdapter,
    StorageError,
    build_storage_key,
)
from infrastructure.storage.storage_config import load_storage_config

TEST_BUCKET = "test-kmf-documents"
TEST_REGION = "us-east-1"
TEST_ACCESS_KEY = "test-access-key"
TEST_SECRET_KEY = "test-secret-key"
TEST_ORG_ID = "ACME"


@pytest.fixture
def s3_client():
    """Mock S3 environment with the test bucket"""
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id=TEST_ACCESS_KEY,
            aws_secret_access_key=TEST_SECRET_KEY,
        )
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture
def storage_adapter(s3_client):
    return S3StorageAdapter(
        endpoint_url=None,  # AWS S3 (moto mocks this)
        access_key=TEST_ACCESS_KEY,
        secret_key=TEST_SECRET_KEY,
        bucket_name=TEST_BUCKET,
        region=TEST_REGION,
    )


def store(adapter, content=b"%PDF-1.7 audit report", org_id=TEST_ORG_ID, filename="audit.pdf"):
    return adapter.store_file(
        file=io.BytesIO(content),
        org_id=org_id,
        filename=filename,
        mime_type="application/pdf",
    )


class TestStoreFile:
    """Test file storage operations"""

    def test_store_file_success(self, storage_adapter):
        content = b"%PDF-1.7 certificate"

        stored = store(storage_adapter, content)

        assert isinstance(stored, StoredFile)
        assert stored.storage_key.startswith(f"{TEST_ORG_ID}/")
        assert stored.storage_key.endswith(".pdf")
        assert stored.sha256 == hashlib.sha256(content).hexdigest()
        assert stored.size_bytes == len(content)
        assert stored.mime_type == "application/pdf"

    def test_store_file_larger_than_chunk(self, storage_adapter):
        content = b"X" * (20 * 1024)

        stored = store(storage_adapter, content)

        assert stored.size_bytes == len(content)
        assert stored.sha256 == hashlib.sha256(content).hexdigest()

    def test_store_empty_file_raises_error(self, storage_adapter):
        with pytest.raises(ValueError, match="Cannot store empty file"):
            store(storage_adapter, b"")

    def test_metadata_stored_with_file(self, storage_adapter, s3_client):
        stored = store(storage_adapter, filename="gaa-bap.pdf")

        head = s3_client.head_object(Bucket=TEST_BUCKET, Key=stored.storage_key)

        assert head["ContentType"] == "application/pdf"
        assert head["Metadata"]["original_filename"] == "gaa-bap.pdf"
        assert head["Metadata"]["org_id"] == TEST_ORG_ID
        assert head["Metadata"]["sha256"] == stored.sha256


class TestDeduplication:
    """Test per-org content deduplication"""

    def test_same_content_same_key(self, storage_adapter):
        stored1 = store(storage_adapter, filename="audit.pdf")
        stored2 = store(storage_adapter, filename="audit.pdf")

        assert stored1.storage_key == stored2.storage_key

    def test_different_orgs_different_keys(self, storage_adapter):
        stored1 = store(storage_adapter, org_id="ACME")
        stored2 = store(storage_adapter, org_id="GLOBEX")

        assert stored1.storage_key != stored2.storage_key
        assert stored1.sha256 == stored2.sha256


class TestStorageKey:
    """Test storage key layout {org_id}/{yyyy}/{mm}/{sha256}{ext}"""

    def test_storage_key_format(self):
        now = datetime.now(timezone.utc)

        key = build_storage_key("ACME", "abc123", "Audit.PDF")

        assert key == f"ACME/{now.year}/{now.month:02d}/abc123.pdf"

    def test_storage_key_without_extension(self):
        key = build_storage_key("ACME", "abc123", "scan")

        assert key.endswith("/abc123")


class TestRetrieveAndDelete:
    """Test retrieval, existence and deletion"""

    def test_retrieve_file(self, storage_adapter):
        content = b"%PDF-1.7 retrieval"
        stored = store(storage_adapter, content)

        stream = storage_adapter.retrieve_file(stored.storage_key)

        assert stream.read() == content

    def test_retrieve_missing_file(self, storage_adapter):
        with pytest.raises(FileNotFoundError, match="File not found"):
            storage_adapter.retrieve_file(f"{TEST_ORG_ID}/2026/01/missing.pdf")

    def test_file_exists(self, storage_adapter):
        stored = store(storage_adapter)

        assert storage_adapter.file_exists(stored.storage_key) is True
        assert storage_adapter.file_exists(f"{TEST_ORG_ID}/2026/01/missing.pdf") is False

    def test_delete_file(self, storage_adapter):
        stored = store(storage_adapter)

        assert storage_adapter.delete_file(stored.storage_key) is True
        assert storage_adapter.file_exists(stored.storage_key) is False
        assert storage_adapter.delete_file(stored.storage_key) is False


class TestVerifyBucket:
    """Test bucket verification used by health checks"""

    def test_verify_bucket_exists(self, storage_adapter):
        assert storage_adapter.verify_bucket_exists() is True
        storage_adapter.ping()

    def test_verify_missing_bucket_raises_error(self, s3_client):
        adapter = S3StorageAdapter(
            endpoint_url=None,
            access_key=TEST_ACCESS_KEY,
            secret_key=TEST_SECRET_KEY,
            bucket_name="missing-bucket",
            region=TEST_REGION,
        )

        with pytest.raises(StorageError, match="does not exist"):
            adapter.ping()


class TestStorageConfig:
    """Test storage configuration from settings"""

    def test_minio_endpoint_defaults_to_http(self):
        settings = Settings(
            MINIO_ENDPOINT="localhost:9000",
            MINIO_ROOT_USER="minioadmin",
            MINIO_ROOT_PASSWORD="minioadmin",
        )

        config = load_storage_config(settings)

        assert config.endpoint_url == "http://localhost:9000"
        assert config.use_ssl is False
        assert config.bucket_name == "kmf-documents"

    def test_aws_s3_without_endpoint(self):
        settings = Settings(MINIO_ROOT_USER="key", MINIO_ROOT_PASSWORD="secret", AWS_REGION="eu-central-1")

        config = load_storage_config(settings)

        assert config.endpoint_url is None
        assert config.use_ssl is True
        assert config.region == "eu-central-1"

    def test_missing_credentials(self):
        with pytest.raises(ValueError, match="Missing required storage credentials"):
            load_storage_config(Settings(MINIO_ROOT_USER=None, MINIO_ROOT_PASSWORD=None))
