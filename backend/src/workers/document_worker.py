"""Document worker - Celery task storing large content files.

The API hands content above ASYNC_UPLOAD_THRESHOLD_BYTES to this task and
answers 202 right away. The task uploads the file, points the document at
it and writes the terminal state of the write's transaction. Failures are
recorded on the transaction; the task is not retried.
"""

import base64
import logging
from typing import Any, Dict

from database import SessionLocal
from dependencies import get_storage_adapter
from domain.documents.transactions import TransactionStatus
from models import Document, Transaction
from services.document_service import finish_transaction, release_content, store_content
from .base import BaseTask, validate_org_id
from .celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="documents.store_content", base=BaseTask, bind=True)
def store_document_content(
    self,
    document_id: str,
    correlation_id: str,
    content_b64: str,
    file_name: str,
    mime_type: str,
    replace: bool = False,
    org_id: str = None,
) -> Dict[str, Any]:
    """Store a document's content file (background task).

    Args:
        document_id: Document receiving the content
        correlation_id: Transaction to complete
        content_b64: File content, base64 encoded (JSON-safe)
        file_name: Original filename
        mime_type: Validated MIME type
        replace: True for a content update (bumps the document version
            and releases the previous file)
        org_id: Owning organization (REQUIRED)

    Returns:
        Dict with status, document_id and, on success, content_file
    """
    org_id = validate_org_id(org_id)
    session = SessionLocal()

    try:
        transaction = session.get(Transaction, correlation_id)
        if transaction is None:
            raise ValueError(f"Transaction {correlation_id} not found")

        document = session.query(Document).filter(
            Document.id == document_id,
            Document.organization_id == org_id,
        ).first()

        if document is None:
            error_msg = f"Document {document_id} not found in org {org_id}"
            logger.error(error_msg)
            finish_transaction(transaction, TransactionStatus.FAILED, error_msg)
            session.commit()
            return {"status": "failed", "document_id": document_id, "error": error_msg}

        logger.info(
            f"Storing content for document {document_id} "
            f"(mime_type={mime_type}, org={org_id}, replace={replace})"
        )

        try:
            stored = store_content(
                get_storage_adapter(),
                org_id,
                file_name,
                mime_type,
                base64.b64decode(content_b64),
            )
        except Exception as e:
            logger.error(
                f"Content storage failed: document={document_id}, error={e}",
                exc_info=True
            )
            finish_transaction(transaction, TransactionStatus.FAILED, f"Failed to store content: {e}")
            session.commit()
            return {"status": "failed", "document_id": document_id, "error": str(e)}

        previous_key = document.content_file
        document.content_file = stored.storage_key
        document.file_name = file_name
        document.mime_type = mime_type
        if replace:
            document.bump_version()
        finish_transaction(transaction, TransactionStatus.COMPLETED)
        session.commit()

        if previous_key and previous_key != stored.storage_key:
            release_content(session, get_storage_adapter(), previous_key)

        logger.info(
            f"Content stored: document={document_id}, "
            f"storage_key={stored.storage_key}, size={stored.size_bytes}"
        )
        return {
            "status": "completed",
            "document_id": document_id,
            "content_file": stored.storage_key,
        }

    except Exception:
        session.rollback()
        raise

    finally:
        session.close()
