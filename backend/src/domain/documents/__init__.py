"""Documents domain module - templates, validation, access resolution, transactions"""

from .access import can_access, ensure_access, is_owner
from .errors import (
    AccessDenied,
    DocumentError,
    DomainRuleViolation,
    PayloadTooLarge,
    StructuralError,
    UnsupportedMediaType,
)
from .ports.traceable_element_index import TraceableElementIndexPort
from .models import (
    CustomProperty,
    CustomPropertyFormat,
    DocumentAssociations,
    DocumentEntitlement,
    DocumentProperties,
    EntitlementMode,
    TraceableCategory,
    TraceableLink,
)
from .templates import DocumentTemplate, DocumentType, TEMPLATES, list_document_types, lookup_template
from .transactions import TransactionStatus, can_transition, is_terminal, ALLOWED_TRANSITIONS
from .validation import (
    ValidatedSubmission,
    check_upload,
    validate_associations,
    validate_document_submission,
    validate_entitlement,
    validate_file_size,
    validate_file_type,
    validate_filename,
    validate_properties,
    sanitize_filename,
)

__all__ = [
    "can_access",
    "ensure_access",
    "is_owner",
    "AccessDenied",
    "DocumentError",
    "DomainRuleViolation",
    "PayloadTooLarge",
    "StructuralError",
    "UnsupportedMediaType",
    "CustomProperty",
    "CustomPropertyFormat",
    "DocumentAssociations",
    "DocumentEntitlement",
    "DocumentProperties",
    "EntitlementMode",
    "TraceableCategory",
    "TraceableLink",
    "TraceableElementIndexPort",
    "DocumentTemplate",
    "DocumentType",
    "TEMPLATES",
    "list_document_types",
    "lookup_template",
    "TransactionStatus",
    "can_transition",
    "is_terminal",
    "ALLOWED_TRANSITIONS",
    "ValidatedSubmission",
    "check_upload",
    "validate_associations",
    "validate_document_submission",
    "validate_entitlement",
    "validate_file_size",
    "validate_file_type",
    "validate_filename",
    "validate_properties",
    "sanitize_filename",
]
