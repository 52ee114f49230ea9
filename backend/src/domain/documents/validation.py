"""Validation of document submissions and uploaded files.

Each payload is checked in two passes: a shape pass (pydantic) that raises
StructuralError, then a rule pass that raises DomainRuleViolation. A full
submission is validated in the fixed order properties, associations,
entitlement, file type, then the uploaded file itself (check_upload); the
first failing stage is the only one reported.

All functions here are pure.
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from config import get_settings
from .errors import DomainRuleViolation, PayloadTooLarge, StructuralError, UnsupportedMediaType
from .models import (
    EVENT_FIELD,
    TRACEABLE_FIELDS,
    TRANSACTION_FIELD,
    DocumentAssociations,
    DocumentEntitlement,
    DocumentProperties,
    EntitlementMode,
    TraceableLink,
)
from .templates import DocumentTemplate, lookup_template


class _AssociationsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location_gln_list: list[StrictStr] = Field(default_factory=list, alias="locationGLNList")
    product_list: list[StrictStr] = Field(default_factory=list, alias="productList")
    organization_list: list[StrictStr] = Field(default_factory=list, alias="organizationList")
    epc_list: list[StrictStr] = Field(default_factory=list, alias="epcList")
    event_id_list: list[StrictStr] = Field(default_factory=list, alias="eventIDList")
    transaction_id_list: list[StrictStr] = Field(default_factory=list, alias="transactionIDList")


class _EntitlementPayload(BaseModel):
    mode: StrictStr
    entitled_org_ids: list[StrictStr] = Field(default_factory=list, alias="entitledOrgIds")


@dataclass(frozen=True)
class ValidatedSubmission:
    """Everything needed to persist a new document"""
    template: DocumentTemplate
    properties: DocumentProperties
    associations: DocumentAssociations
    entitlement: DocumentEntitlement

    def stored_properties(self) -> dict[str, Any]:
        """Properties as persisted; their association lists mirror the validated associations"""
        return {**self.properties.to_dict(), **self.associations.to_dict()}


def _shape_errors(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def _require_mapping(raw: Any, what: str) -> None:
    if not isinstance(raw, Mapping):
        raise StructuralError(
            f"{what} must be a JSON object",
            {"errors": [{"field": "", "message": f"expected object, got {type(raw).__name__}"}]},
        )


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def validate_properties(
    raw: Any,
    template: Optional[DocumentTemplate] = None,
) -> DocumentProperties:
    """Validate document properties against their document type template.

    Args:
        raw: Parsed JSON properties payload
        template: Template to check against; looked up from documentType when omitted

    Returns:
        DocumentProperties

    Raises:
        StructuralError: Malformed field or missing required properties
            (all missing names are reported, in template order)
        DomainRuleViolation: Unknown document type, or documentType does not
            match the given template
    """
    _require_mapping(raw, "Document properties")

    try:
        properties = DocumentProperties.model_validate(raw)
    except ValidationError as exc:
        raise StructuralError(
            "Document properties are malformed",
            {"errors": _shape_errors(exc)},
        )

    resolved = lookup_template(properties.document_type)
    if resolved is None:
        raise DomainRuleViolation(
            DomainRuleViolation.UNKNOWN_DOCUMENT_TYPE,
            f"Unknown document type: {properties.document_type}",
            {"documentType": properties.document_type},
        )
    if template is not None and template.type != resolved.type:
        raise DomainRuleViolation(
            DomainRuleViolation.DOCUMENT_TYPE_MISMATCH,
            f"Document type '{properties.document_type}' does not match template '{template.type.value}'",
            {"documentType": properties.document_type, "templateType": template.type.value},
        )
    template = resolved

    missing = [name for name in template.required_properties if _is_empty(raw.get(name))]
    if missing:
        raise StructuralError(
            "Missing required properties",
            {"documentType": template.type.value},
            missing_properties=missing,
        )

    return properties


def validate_associations(raw: Any) -> DocumentAssociations:
    """Validate association lists and the single-traceable-element rule.

    A document may be linked to at most one of locationGLNList, productList,
    organizationList and epcList. eventIDList and transactionIDList are
    unconstrained. Linking nothing at all is valid.

    Raises:
        StructuralError: A field is not a list of strings
        DomainRuleViolation: More than one traceable-element list is non-empty
    """
    if raw is None:
        raw = {}
    _require_mapping(raw, "Document associations")

    try:
        payload = _AssociationsPayload.model_validate(raw)
    except ValidationError as exc:
        raise StructuralError(
            "Document associations are malformed",
            {"errors": _shape_errors(exc)},
        )

    lists = payload.model_dump(by_alias=True)
    links = [
        TraceableLink(category, tuple(lists[field_name]))
        for category, field_name in TRACEABLE_FIELDS.items()
        if lists[field_name]
    ]
    if len(links) > 1:
        offending = [link.category.field_name for link in links]
        raise DomainRuleViolation(
            DomainRuleViolation.SINGLE_TRACEABLE_ELEMENT,
            "Document can only be linked to one type of traceable element "
            f"(single traceable element rule); got {', '.join(offending)}",
            {"traceableElementLists": offending},
        )

    return DocumentAssociations(
        traceable_link=links[0] if links else None,
        event_ids=tuple(lists[EVENT_FIELD]),
        transaction_ids=tuple(lists[TRANSACTION_FIELD]),
    )


def validate_entitlement(raw: Any) -> DocumentEntitlement:
    """Validate an entitlement payload; None yields the private default.

    entitledOrgIds is accepted in both modes.

    Raises:
        StructuralError: mode missing or not a string, entitledOrgIds not a list of strings
        DomainRuleViolation: mode is not 'private' or 'linked'
    """
    if raw is None:
        return DocumentEntitlement()
    _require_mapping(raw, "Document entitlement")

    try:
        payload = _EntitlementPayload.model_validate(raw)
    except ValidationError as exc:
        raise StructuralError(
            "Document entitlement is malformed",
            {"errors": _shape_errors(exc)},
        )

    try:
        mode = EntitlementMode(payload.mode)
    except ValueError:
        raise DomainRuleViolation(
            DomainRuleViolation.INVALID_ENTITLEMENT_MODE,
            f"Invalid entitlement mode '{payload.mode}'; expected one of: "
            + ", ".join(m.value for m in EntitlementMode),
            {"mode": payload.mode},
        )

    return DocumentEntitlement(mode=mode, entitled_org_ids=tuple(payload.entitled_org_ids))


def validate_file_type(mime_type: Optional[str], template: DocumentTemplate) -> None:
    """Check a content file MIME type against the template allow-list.

    No file (None) is not an error: content may arrive later.

    Raises:
        UnsupportedMediaType: mime_type is not allowed by the template
    """
    if mime_type is None:
        return
    if mime_type not in template.allowed_file_types:
        raise UnsupportedMediaType(mime_type, template.allowed_file_types)


def validate_document_submission(
    raw_properties: Any,
    raw_associations: Any = None,
    raw_entitlement: Any = None,
    mime_type: Optional[str] = None,
) -> ValidatedSubmission:
    """Validate a complete document creation request.

    Stages run in order (properties, associations, entitlement, file type)
    and the first failure is raised. The association lists embedded in the
    properties are always rule-checked; when raw_associations is None they
    are the document's associations, otherwise raw_associations replaces them.
    """
    properties = validate_properties(raw_properties)
    template = lookup_template(properties.document_type)

    associations = validate_associations(properties.association_lists())
    if raw_associations is not None:
        associations = validate_associations(raw_associations)

    entitlement = validate_entitlement(raw_entitlement)
    validate_file_type(mime_type, template)

    return ValidatedSubmission(
        template=template,
        properties=properties,
        associations=associations,
        entitlement=entitlement,
    )


def validate_file_size(size_bytes: int, max_size: Optional[int] = None) -> Tuple[bool, Optional[str]]:
    """Validate file size is within limits

    Args:
        size_bytes: File size in bytes
        max_size: Maximum allowed size (defaults to MAX_UPLOAD_SIZE_BYTES)

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        >>> validate_file_size(1024)
        (True, None)
        >>> validate_file_size(0)
        (False, 'File is empty (0 bytes)')
    """
    if max_size is None:
        max_size = get_settings().MAX_UPLOAD_SIZE_BYTES

    if size_bytes == 0:
        return False, "File is empty (0 bytes)"

    if size_bytes > max_size:
        return False, f"File exceeds maximum size of {max_size} bytes (got {size_bytes} bytes)"

    return True, None


def validate_filename(filename: str) -> Tuple[bool, Optional[str]]:
    """Validate an uploaded filename

    Validation rules:
    - Not empty
    - Max 255 characters
    - No path traversal (../, ..\\)
    - No null bytes or control characters

    Example:
        >>> validate_filename('certificate.pdf')
        (True, None)
        >>> validate_filename('')
        (False, 'Filename cannot be empty')
    """
    if not filename or len(filename.strip()) == 0:
        return False, "Filename cannot be empty"

    if len(filename) > 255:
        return False, f"Filename exceeds 255 characters (got {len(filename)})"

    if '..' in filename or '/' in filename or '\\' in filename:
        return False, "Filename contains path traversal or directory separators"

    if '\x00' in filename:
        return False, "Filename contains null bytes"

    if any(ord(c) < 32 for c in filename):
        return False, "Filename contains control characters"

    return True, None


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage

    Example:
        >>> sanitize_filename('../../audit.pdf')
        'audit.pdf'
        >>> sanitize_filename('audit (copy).pdf')
        'audit_copy_.pdf'
    """
    # Remove path components
    filename = os.path.basename(filename.replace('\\', '/'))

    # Replace problematic characters with underscore
    filename = re.sub(r'[^\w\s.-]', '_', filename)

    # Collapse multiple spaces/underscores
    filename = re.sub(r'[\s_]+', '_', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:255 - len(ext)] + ext

    return filename


def check_upload(filename: str, size_bytes: int, max_size: Optional[int] = None) -> str:
    """File stage of a write: filename and size checks.

    Returns:
        The sanitized filename

    Raises:
        StructuralError: Invalid filename or empty file
        PayloadTooLarge: File exceeds max_size (defaults to MAX_UPLOAD_SIZE_BYTES)
    """
    is_valid, error_msg = validate_filename(filename)
    if not is_valid:
        raise StructuralError(error_msg, {"errors": [{"field": "content", "message": error_msg}]})

    if max_size is None:
        max_size = get_settings().MAX_UPLOAD_SIZE_BYTES
    is_valid, error_msg = validate_file_size(size_bytes, max_size)
    if not is_valid:
        if size_bytes > max_size:
            raise PayloadTooLarge(error_msg, size_bytes, max_size)
        raise StructuralError(error_msg, {"errors": [{"field": "content", "message": error_msg}]})

    return sanitize_filename(filename)
