"""Pytest fixtures for the documents API.

Provides reusable test fixtures for:
- A fresh SQLite database per test (tables created and dropped)
- An in-memory object storage swapped in for S3
- Bearer tokens per organization and role
- A FastAPI TestClient

Usage:
    def test_read(client, auth_headers):
        response = client.get(f"{API}/categories", headers=auth_headers("ACME"))
        assert response.status_code == 200
"""

import json
import os
import sys
import tempfile
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Generator, Optional

# Set environment variables BEFORE any imports to ensure they take effect
_test_dir = tempfile.mkdtemp(prefix="kmf-documents-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_dir}/test.db"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["JWT_SECRET"] = "test-jwt-secret-key-256-bits-minimum-length-required-for-security"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["LOG_JSON"] = "false"

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from config import get_settings

get_settings.cache_clear()

import dependencies
from auth.jwt import create_access_token
from database import SessionLocal, engine
from domain.documents.ports.object_storage_port import ObjectStoragePort, StoredFile
from infrastructure.storage.s3_storage_adapter import build_storage_key, hash_stream
from models.base import Base

API = "/kmf/api/documents/v1"


class InMemoryStorage(ObjectStoragePort):
    """ObjectStoragePort keeping files in a dict, with the S3 adapter's key scheme."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}

    def store_file(self, file: BinaryIO, org_id: str, filename: str, mime_type: str) -> StoredFile:
        content, sha256 = hash_stream(file)
        if not content:
            raise ValueError("Cannot store empty file")
        storage_key = build_storage_key(org_id, sha256, filename)
        self.files[storage_key] = content
        return StoredFile(
            storage_key=storage_key,
            sha256=sha256,
            size_bytes=len(content),
            mime_type=mime_type,
        )

    def retrieve_file(self, storage_key: str) -> BinaryIO:
        if storage_key not in self.files:
            raise FileNotFoundError(f"File not found: {storage_key}")
        return BytesIO(self.files[storage_key])

    def delete_file(self, storage_key: str) -> bool:
        return self.files.pop(storage_key, None) is not None

    def file_exists(self, storage_key: str) -> bool:
        return storage_key in self.files


@pytest.fixture(scope="function", autouse=True)
def database() -> Generator[None, None, None]:
    """Create all tables before each test and drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Session for arranging and inspecting rows (separate from the API's sessions)."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function", autouse=True)
def storage() -> Generator[InMemoryStorage, None, None]:
    """In-memory object storage used by the API and the worker."""
    in_memory = InMemoryStorage()
    dependencies.set_storage_adapter(in_memory)
    yield in_memory
    dependencies.set_storage_adapter(None)


@pytest.fixture(scope="function")
def make_token() -> Callable[..., str]:
    """Mint a bearer token for an organization."""

    def _make_token(org_id: str, role: str = "EDITOR", user_id: str = None) -> str:
        return create_access_token(
            user_id=user_id or f"user-{org_id.lower()}",
            org_id=org_id,
            role=role,
        )

    return _make_token


@pytest.fixture(scope="function")
def auth_headers(make_token) -> Callable[..., Dict[str, str]]:
    """Authorization headers for an organization and role."""

    def _auth_headers(org_id: str, role: str = "EDITOR") -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(org_id, role)}"}

    return _auth_headers


@pytest.fixture(scope="function")
def client() -> TestClient:
    """Unauthenticated test client; pass auth_headers per request."""
    from main import app

    return TestClient(app)


def generic_document_properties(**overrides) -> Dict[str, object]:
    """Complete properties of a Generic Document."""
    properties = {
        "documentType": "Generic Document",
        "documentTitle": "Supplier code of conduct",
        "title": "Code of conduct",
        "description": "Signed by the supplier",
    }
    properties.update(overrides)
    return properties


@pytest.fixture(scope="function")
def post_document(client, auth_headers) -> Callable[..., object]:
    """POST /documents as multipart form; returns the response.

    Usage:
        response = post_document("ACME", entitlement={"mode": "linked"})
    """

    def _post_document(
        org_id: str,
        properties: Optional[dict] = None,
        associations: Optional[dict] = None,
        entitlement: Optional[dict] = None,
        content: Optional[tuple] = None,
        role: str = "EDITOR",
        headers: Optional[Dict[str, str]] = None,
    ):
        data = {"properties": json.dumps(properties or generic_document_properties())}
        if associations is not None:
            data["associations"] = json.dumps(associations)
        if entitlement is not None:
            data["entitlement"] = json.dumps(entitlement)

        request_headers = auth_headers(org_id, role)
        request_headers.update(headers or {})
        return client.post(
            f"{API}/documents",
            data=data,
            files={"content": content} if content else None,
            headers=request_headers,
        )

    return _post_document
