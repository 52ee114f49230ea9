"""Typed errors raised by document validation and access resolution.

The domain layer never logs these; callers translate them into responses.
"""

from typing import Any, Iterable, Optional


class DocumentError(Exception):
    """Base class for all document domain errors."""

    code = "document_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class StructuralError(DocumentError):
    """A field is missing or has the wrong shape."""

    code = "validation_error"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        missing_properties: Iterable[str] = (),
    ):
        super().__init__(message, details)
        self.missing_properties = list(missing_properties)


class DomainRuleViolation(DocumentError):
    """A well-formed payload breaks a domain rule."""

    code = "domain_rule_violation"

    # Rule identifiers
    SINGLE_TRACEABLE_ELEMENT = "single_traceable_element"
    UNKNOWN_DOCUMENT_TYPE = "unknown_document_type"
    DOCUMENT_TYPE_MISMATCH = "document_type_mismatch"
    INVALID_ENTITLEMENT_MODE = "invalid_entitlement_mode"

    def __init__(self, rule: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, details)
        self.rule = rule


class UnsupportedMediaType(DocumentError):
    """Content file MIME type is not allowed by the document template."""

    code = "unsupported_media_type"

    def __init__(self, mime_type: Optional[str], allowed_types: Iterable[str]):
        self.mime_type = mime_type
        self.allowed_types = sorted(allowed_types)
        super().__init__(
            f"Unsupported file type: {mime_type}",
            {"mimeType": mime_type, "allowedTypes": self.allowed_types},
        )


class AccessDenied(DocumentError):
    """The requesting organization may not access the document."""

    code = "access_denied"

    def __init__(self, document_id: str, org_id: str):
        self.document_id = document_id
        self.org_id = org_id
        super().__init__(
            f"Organization {org_id} may not access document {document_id}",
            {"documentId": document_id, "orgId": org_id},
        )


class PayloadTooLarge(DocumentError):
    """An uploaded file exceeds the configured size limit."""

    code = "payload_too_large"

    def __init__(self, message: str, size_bytes: int, max_size: int):
        self.size_bytes = size_bytes
        self.max_size = max_size
        super().__init__(message, {"sizeBytes": size_bytes, "maxSizeBytes": max_size})
