"""Write-side helpers shared by the documents API and the Celery worker.

Covers the transaction lifecycle of a write (pending row at the start,
exactly one terminal state at the end) and content storage bookkeeping.
"""

import logging
from io import BytesIO
from typing import Optional

from sqlalchemy.orm import Session

from domain.documents.ports.object_storage_port import ObjectStoragePort, StoredFile
from domain.documents.transactions import TransactionStatus
from models import Attachment, Document, Transaction
from observability.metrics import transactions_finished_total

logger = logging.getLogger(__name__)


class DuplicateCorrelationId(Exception):
    """A transaction with this correlation ID already exists."""

    def __init__(self, correlation_id: str):
        super().__init__(f"Correlation ID already used: {correlation_id}")
        self.correlation_id = correlation_id


def start_transaction(
    db: Session,
    correlation_id: str,
    org_id: str,
    document_id: Optional[str] = None,
) -> Transaction:
    """Record a pending transaction for a write (flushed, not committed).

    Raises:
        DuplicateCorrelationId: If the correlation ID was used before
    """
    if db.get(Transaction, correlation_id) is not None:
        raise DuplicateCorrelationId(correlation_id)

    transaction = Transaction(
        correlation_id=correlation_id,
        organization_id=org_id,
        document_id=document_id,
    )
    transaction.transition_to(TransactionStatus.PENDING)
    db.add(transaction)
    db.flush()

    logger.info(f"Transaction started: correlation_id={correlation_id}, org={org_id}")
    return transaction


def finish_transaction(
    transaction: Transaction,
    status: TransactionStatus,
    error: Optional[str] = None,
) -> None:
    """Write the terminal state of a transaction (caller commits)."""
    transaction.transition_to(status, error)
    transactions_finished_total.labels(status=status.value).inc()

    log = logger.warning if status == TransactionStatus.FAILED else logger.info
    log(
        f"Transaction finished: correlation_id={transaction.correlation_id}, "
        f"status={status.value}" + (f", error={error}" if error else "")
    )


def store_content(
    storage: ObjectStoragePort,
    org_id: str,
    file_name: str,
    mime_type: str,
    content: bytes,
) -> StoredFile:
    """Upload file content under the owning organization's prefix"""
    return storage.store_file(
        file=BytesIO(content),
        org_id=org_id,
        filename=file_name,
        mime_type=mime_type,
    )


def is_content_referenced(db: Session, storage_key: str) -> bool:
    """True if any document or attachment still points at the storage key.

    Deduplicated uploads share keys, so a file may only be removed once
    nothing references it.
    """
    document_ref = db.query(Document.id).filter(Document.content_file == storage_key).first()
    if document_ref is not None:
        return True
    attachment_ref = db.query(Attachment.id).filter(Attachment.content_file == storage_key).first()
    return attachment_ref is not None


def release_content(db: Session, storage: ObjectStoragePort, storage_key: Optional[str]) -> bool:
    """Delete a stored file if no row references it any more.

    Call after the rows that dropped the reference were flushed.

    Returns:
        True if the file was deleted
    """
    if not storage_key:
        return False
    if is_content_referenced(db, storage_key):
        logger.info(f"Stored file still referenced, keeping: storage_key={storage_key}")
        return False
    return storage.delete_file(storage_key)

