"""Documents API endpoints.

Document types and templates, document creation with validation, content
and attachment storage, entitlement management. Reads are gated by the
access resolver; writes require the EDITOR role and, except for creation,
ownership of the document.

Every write (creation, content update, attachment create/update) records a
Transaction under the request's correlation ID.
"""

import base64
import json
import logging
from typing import Any, Iterator, Optional

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.orm import Session

from auth.dependencies import AuthContext, CurrentAuth, EditorAuth
from config import get_settings
from database import get_db
from dependencies import get_storage_adapter, get_traceable_element_index
from domain.documents import (
    AccessDenied,
    StructuralError,
    TraceableElementIndexPort,
    check_upload,
    ensure_access,
    is_owner,
    list_document_types,
    lookup_template,
    validate_document_submission,
    validate_entitlement,
    validate_file_type,
)
from domain.documents.ports.object_storage_port import ObjectStoragePort
from domain.documents.transactions import TransactionStatus
from infrastructure.storage.s3_storage_adapter import StorageError
from models import Attachment, Document, Transaction
from models.base import new_id
from observability.correlation_id import generate_correlation_id, get_correlation_id
from observability.metrics import access_decisions_total, documents_created_total
from services.document_service import (
    finish_transaction,
    release_content,
    start_transaction,
    store_content,
)
from .schemas import AcceptedResponse, CategoriesResponse, TemplateResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])

_DEFAULT_MIME_TYPE = "application/octet-stream"
_STREAM_CHUNK_SIZE = 64 * 1024


# =============================================================================
# HELPERS
# =============================================================================

def _parse_json_field(name: str, raw: Optional[str]) -> Any:
    """Parse a JSON-encoded multipart field; None when the field was omitted.

    Raises:
        StructuralError: If the field is not valid JSON
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise StructuralError(
            f"Field '{name}' is not valid JSON",
            {"errors": [{"field": name, "message": str(e)}]},
        )


def _read_upload(upload: UploadFile) -> tuple[bytes, str, str]:
    """Read an uploaded file; checks are left to check_upload.

    Returns:
        Tuple of (content, filename as sent, MIME type)
    """
    content = upload.file.read()
    return content, upload.filename or "", upload.content_type or _DEFAULT_MIME_TYPE


def _is_async_upload(content: bytes) -> bool:
    return len(content) > get_settings().ASYNC_UPLOAD_THRESHOLD_BYTES


def _current_correlation_id() -> str:
    return get_correlation_id() or generate_correlation_id()


def _get_readable_document(
    db: Session,
    document_id: str,
    auth: AuthContext,
    index: TraceableElementIndexPort,
) -> Document:
    """Load a document the caller's organization may read.

    Missing and inaccessible documents are indistinguishable.

    Raises:
        AccessDenied: Document does not exist or access is denied
    """
    document = db.get(Document, document_id)
    if document is None:
        raise AccessDenied(document_id, auth.org_id)

    try:
        ensure_access(document, auth.org_id, index)
    except AccessDenied:
        access_decisions_total.labels(decision="deny").inc()
        logger.info(f"Access denied: document={document_id}, org={auth.org_id}")
        raise

    access_decisions_total.labels(decision="allow").inc()
    return document


def _get_owned_document(
    db: Session,
    document_id: str,
    auth: AuthContext,
    index: TraceableElementIndexPort,
) -> Document:
    """Load a document for modification by its owning organization.

    Raises:
        AccessDenied: Caller cannot read the document (404)
        HTTPException 403: Caller can read but does not own the document
    """
    document = _get_readable_document(db, document_id, auth, index)
    if not is_owner(document, auth.org_id):
        logger.warning(
            f"Modification refused: document={document_id}, org={auth.org_id}, "
            f"owner={document.organization_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the owning organization may modify this document",
        )
    return document


def _get_attachment(db: Session, document: Document, attachment_id: str) -> Attachment:
    attachment = db.query(Attachment).filter(
        Attachment.id == attachment_id,
        Attachment.document_id == document.id,
    ).first()
    if attachment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Attachment not found",
        )
    return attachment


def _record_failed_write(db: Session, correlation_id: str, org_id: str, error: str) -> None:
    """Discard the failed write and persist only its failed transaction"""
    db.rollback()
    transaction = start_transaction(db, correlation_id, org_id)
    finish_transaction(transaction, TransactionStatus.FAILED, error)
    db.commit()


def _enqueue_content(
    db: Session,
    document: Document,
    correlation_id: str,
    content: bytes,
    file_name: str,
    mime_type: str,
    replace: bool,
) -> None:
    """Hand content to the background worker (document and transaction committed first).

    If the task cannot be enqueued the write is undone: a document created
    by this request is deleted, and the transaction is marked failed.

    Raises:
        StorageError: The task could not be enqueued
    """
    # Imported here so the API does not need a broker connection at import time
    from workers.document_worker import store_document_content

    document_id = document.id
    try:
        store_document_content.delay(
            document_id=document_id,
            correlation_id=correlation_id,
            content_b64=base64.b64encode(content).decode("ascii"),
            file_name=file_name,
            mime_type=mime_type,
            replace=replace,
            org_id=document.organization_id,
        )
    except Exception as e:
        logger.error(f"Failed to enqueue content storage: document={document_id}, error={e}")
        db.rollback()
        transaction = db.get(Transaction, correlation_id)
        if not replace:
            db.delete(db.get(Document, document_id))
            transaction.document_id = None
        finish_transaction(transaction, TransactionStatus.FAILED, f"Failed to enqueue: {e}")
        db.commit()
        raise StorageError(f"Failed to enqueue content storage: {e}") from e


def _stream(file_stream) -> Iterator[bytes]:
    try:
        while True:
            chunk = file_stream.read(_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        file_stream.close()


def _file_response(
    storage: ObjectStoragePort,
    storage_key: str,
    mime_type: Optional[str],
    file_name: Optional[str],
) -> StreamingResponse:
    try:
        file_stream = storage.retrieve_file(storage_key)
    except FileNotFoundError:
        logger.error(f"File not found in storage: storage_key={storage_key}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found in storage",
        )

    headers = {}
    if file_name:
        headers["Content-Disposition"] = f'attachment; filename="{file_name}"'
    return StreamingResponse(
        _stream(file_stream),
        media_type=mime_type or _DEFAULT_MIME_TYPE,
        headers=headers,
    )


# =============================================================================
# TEMPLATES
# =============================================================================

@router.get("/categories", response_model=CategoriesResponse)
def get_categories():
    """List all available document types."""
    return {"categories": list_document_types()}


@router.get("/templates/{document_type}", response_model=TemplateResponse)
def get_template(document_type: str):
    """Get the template of a document type."""
    template = lookup_template(document_type)
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document type not found",
        )
    return template.to_dict()


# =============================================================================
# DOCUMENTS
# =============================================================================

@router.post(
    "/documents",
    status_code=status.HTTP_201_CREATED,
    responses={202: {"model": AcceptedResponse}},
)
def create_document(
    auth: EditorAuth,
    properties: str = Form(..., description="Document properties (JSON)"),
    associations: Optional[str] = Form(None, description="Document associations (JSON)"),
    entitlement: Optional[str] = Form(None, description="Document entitlement (JSON)"),
    content: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Create a document.

    Properties, associations and entitlement are validated in that order,
    then the content file type against the document type's template. When
    associations are omitted they are read from the properties.

    Returns 201 with the document when the write completed, or 202 with the
    correlation ID when content larger than ASYNC_UPLOAD_THRESHOLD_BYTES is
    stored in the background.

    Example:
        curl -X POST .../kmf/api/documents/v1/documents \\
             -H "Authorization: Bearer $TOKEN" \\
             -F 'properties={"documentType": "Generic Document", ...}' \\
             -F "content=@report.pdf;type=application/pdf"
    """
    raw_properties = _parse_json_field("properties", properties)
    raw_associations = _parse_json_field("associations", associations)
    raw_entitlement = _parse_json_field("entitlement", entitlement)

    file_content, file_name, mime_type = None, None, None
    if content is not None:
        file_content, file_name, mime_type = _read_upload(content)

    submission = validate_document_submission(
        raw_properties,
        raw_associations,
        raw_entitlement,
        mime_type,
    )
    if file_content is not None:
        file_name = check_upload(file_name, len(file_content))

    correlation_id = _current_correlation_id()
    document = Document(
        id=new_id(),
        type=submission.template.type.value,
        properties_json=submission.stored_properties(),
        content_file="",
        file_name=file_name,
        mime_type=mime_type,
        associations_json=submission.associations.to_dict(),
        entitlement_json=submission.entitlement.to_dict(),
        version=1,
        created_by=auth.user_id,
        organization_id=auth.org_id,
    )
    db.add(document)
    transaction = start_transaction(db, correlation_id, auth.org_id, document.id)

    if file_content is not None and _is_async_upload(file_content):
        db.commit()
        _enqueue_content(db, document, correlation_id, file_content, file_name, mime_type, replace=False)
        documents_created_total.labels(document_type=document.type, completion="async").inc()

        logger.info(
            f"Document accepted: id={document.id}, type={document.type}, "
            f"org={auth.org_id}, size={len(file_content)}"
        )
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=AcceptedResponse(
                correlationId=correlation_id,
                documentId=document.id,
                message="Document creation in progress",
            ).model_dump(),
        )

    if file_content is not None:
        try:
            stored = store_content(storage, auth.org_id, file_name, mime_type, file_content)
        except StorageError as e:
            _record_failed_write(db, correlation_id, auth.org_id, f"Failed to store content: {e}")
            raise
        document.content_file = stored.storage_key

    finish_transaction(transaction, TransactionStatus.COMPLETED)
    db.commit()
    db.refresh(document)
    documents_created_total.labels(document_type=document.type, completion="sync").inc()

    logger.info(
        f"Document created: id={document.id}, type={document.type}, "
        f"org={auth.org_id}, content_file={document.content_file or '-'}"
    )
    return document.to_dict()


@router.get("/documents/{document_id}")
def get_document(
    document_id: str,
    auth: CurrentAuth,
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
):
    """Get a document the caller's organization may access (404 otherwise)."""
    document = _get_readable_document(db, document_id, auth, index)
    return document.to_dict()


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    auth: EditorAuth,
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Delete a document together with its attachments (owner only)."""
    document = _get_owned_document(db, document_id, auth, index)
    storage_keys = [document.content_file] + [a.content_file for a in document.attachments]

    db.delete(document)
    db.commit()

    for storage_key in dict.fromkeys(storage_keys):
        release_content(db, storage, storage_key)

    logger.info(f"Document deleted: id={document_id}, org={auth.org_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# CONTENT
# =============================================================================

@router.get("/documents/{document_id}/content")
def get_document_content(
    document_id: str,
    auth: CurrentAuth,
    version: Optional[int] = Query(None, ge=1, description="Document version"),
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Stream the document's content file.

    Only the content of the current version is retained; asking for any
    other version is a 404.
    """
    document = _get_readable_document(db, document_id, auth, index)

    if version is not None and version != document.version:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Content of version {version} is not available (current version: {document.version})",
        )
    if not document.content_file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document content not found",
        )

    return _file_response(storage, document.content_file, document.mime_type, document.file_name)


@router.put("/documents/{document_id}/content")
def update_document_content(
    document_id: str,
    auth: EditorAuth,
    content: UploadFile = File(...),
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Replace the content file (owner only) and increment the version.

    Large files are stored in the background (202), like on creation.
    """
    document = _get_owned_document(db, document_id, auth, index)
    file_content, file_name, mime_type = _read_upload(content)
    validate_file_type(mime_type, lookup_template(document.type))
    file_name = check_upload(file_name, len(file_content))

    correlation_id = _current_correlation_id()
    transaction = start_transaction(db, correlation_id, auth.org_id, document.id)

    if _is_async_upload(file_content):
        db.commit()
        _enqueue_content(db, document, correlation_id, file_content, file_name, mime_type, replace=True)
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content=AcceptedResponse(
                correlationId=correlation_id,
                documentId=document.id,
                message="Document content update in progress",
            ).model_dump(),
        )

    try:
        stored = store_content(storage, auth.org_id, file_name, mime_type, file_content)
    except StorageError as e:
        _record_failed_write(db, correlation_id, auth.org_id, f"Failed to store content: {e}")
        raise

    previous_key = document.content_file
    document.content_file = stored.storage_key
    document.file_name = file_name
    document.mime_type = mime_type
    document.bump_version()
    finish_transaction(transaction, TransactionStatus.COMPLETED)
    db.commit()

    if previous_key and previous_key != stored.storage_key:
        release_content(db, storage, previous_key)

    db.refresh(document)
    logger.info(f"Document content updated: id={document.id}, version={document.version}")
    return document.to_dict()


# =============================================================================
# ENTITLEMENT
# =============================================================================

@router.get("/documents/{document_id}/entitlement")
def get_document_entitlement(
    document_id: str,
    auth: CurrentAuth,
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
):
    """Get the entitlement of a document the caller may access."""
    document = _get_readable_document(db, document_id, auth, index)
    return document.entitlement.to_dict()


@router.put("/documents/{document_id}/entitlement")
def update_document_entitlement(
    document_id: str,
    auth: EditorAuth,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
):
    """Replace the entitlement (owner only) and increment the version."""
    document = _get_owned_document(db, document_id, auth, index)
    entitlement = validate_entitlement(payload)

    document.entitlement_json = entitlement.to_dict()
    document.bump_version()
    db.commit()

    logger.info(
        f"Document entitlement updated: id={document.id}, mode={entitlement.mode.value}, "
        f"entitled_orgs={len(entitlement.entitled_org_ids)}, version={document.version}"
    )
    return entitlement.to_dict()


# =============================================================================
# ATTACHMENTS
# =============================================================================

@router.post("/documents/{document_id}/attachments", status_code=status.HTTP_201_CREATED)
def create_attachment(
    document_id: str,
    auth: EditorAuth,
    content: UploadFile = File(...),
    attachment_type: str = Form(..., alias="type", min_length=1),
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Attach a file to a document (owner only)."""
    document = _get_owned_document(db, document_id, auth, index)
    file_content, file_name, mime_type = _read_upload(content)
    file_name = check_upload(file_name, len(file_content))

    correlation_id = _current_correlation_id()
    transaction = start_transaction(db, correlation_id, auth.org_id, document.id)

    try:
        stored = store_content(storage, auth.org_id, file_name, mime_type, file_content)
    except StorageError as e:
        _record_failed_write(db, correlation_id, auth.org_id, f"Failed to store attachment: {e}")
        raise

    attachment = Attachment(
        id=new_id(),
        document_id=document.id,
        type=attachment_type,
        content_file=stored.storage_key,
        file_name=file_name,
        mime_type=mime_type,
    )
    db.add(attachment)
    finish_transaction(transaction, TransactionStatus.COMPLETED)
    db.commit()
    db.refresh(attachment)

    logger.info(f"Attachment created: id={attachment.id}, document={document.id}")
    return attachment.to_dict()


@router.get("/documents/{document_id}/attachments/{attachment_id}")
def get_attachment(
    document_id: str,
    attachment_id: str,
    auth: CurrentAuth,
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Stream an attachment of a document the caller may access."""
    document = _get_readable_document(db, document_id, auth, index)
    attachment = _get_attachment(db, document, attachment_id)
    return _file_response(storage, attachment.content_file, attachment.mime_type, attachment.file_name)


@router.put("/documents/{document_id}/attachments/{attachment_id}")
def update_attachment(
    document_id: str,
    attachment_id: str,
    auth: EditorAuth,
    content: UploadFile = File(...),
    attachment_type: Optional[str] = Form(None, alias="type", min_length=1),
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Replace an attachment's file, and optionally its type (owner only)."""
    document = _get_owned_document(db, document_id, auth, index)
    attachment = _get_attachment(db, document, attachment_id)
    file_content, file_name, mime_type = _read_upload(content)
    file_name = check_upload(file_name, len(file_content))

    correlation_id = _current_correlation_id()
    transaction = start_transaction(db, correlation_id, auth.org_id, document.id)

    try:
        stored = store_content(storage, auth.org_id, file_name, mime_type, file_content)
    except StorageError as e:
        _record_failed_write(db, correlation_id, auth.org_id, f"Failed to store attachment: {e}")
        raise

    previous_key = attachment.content_file
    attachment.content_file = stored.storage_key
    attachment.file_name = file_name
    attachment.mime_type = mime_type
    if attachment_type is not None:
        attachment.type = attachment_type
    finish_transaction(transaction, TransactionStatus.COMPLETED)
    db.commit()

    if previous_key != stored.storage_key:
        release_content(db, storage, previous_key)

    db.refresh(attachment)
    logger.info(f"Attachment updated: id={attachment.id}, document={document.id}")
    return attachment.to_dict()


@router.delete(
    "/documents/{document_id}/attachments/{attachment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_attachment(
    document_id: str,
    attachment_id: str,
    auth: EditorAuth,
    db: Session = Depends(get_db),
    index: TraceableElementIndexPort = Depends(get_traceable_element_index),
    storage: ObjectStoragePort = Depends(get_storage_adapter),
):
    """Delete an attachment (owner only)."""
    document = _get_owned_document(db, document_id, auth, index)
    attachment = _get_attachment(db, document, attachment_id)
    storage_key = attachment.content_file

    db.delete(attachment)
    db.commit()
    release_content(db, storage, storage_key)

    logger.info(f"Attachment deleted: id={attachment_id}, document={document_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
