"""Declarative base and shared column helpers for all models"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base
from sqlalchemy import TypeDecorator, JSON
from sqlalchemy.dialects.postgresql import JSONB


class PortableJSONB(TypeDecorator):
    """JSON type that works with both PostgreSQL (JSONB) and SQLite (JSON).

    Uses JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and
    local development).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


def utcnow() -> datetime:
    """Timezone-aware current time for created_at/updated_at defaults"""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Primary key generator for documents and attachments (UUID4 string)"""
    return str(uuid.uuid4())


Base = declarative_base()
