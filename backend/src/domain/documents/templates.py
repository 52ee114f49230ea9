"""Document type templates.

Each document type has exactly one template describing the properties a
submission must carry and the MIME types accepted for its content file.
The registry is built at import time and never mutated.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class DocumentType(str, Enum):
    """Supported document types (wire values are the display names)"""
    GENERIC_DOCUMENT = "Generic Document"
    GENERIC_CERTIFICATE = "Generic Certificate"
    GAA_BAP_CERTIFICATE = "GAA BAP Certificate"


@dataclass(frozen=True)
class DocumentTemplate:
    """Required properties and allowed content types for one document type.

    Attributes:
        type: Document type this template applies to
        required_properties: Property names that must be present and non-empty,
            in the order they are reported when missing
        allowed_file_types: MIME types accepted for content files and attachments
    """
    type: DocumentType
    required_properties: tuple[str, ...]
    allowed_file_types: frozenset[str]

    def to_dict(self) -> dict:
        """Convert to the wire representation"""
        return {
            "type": self.type.value,
            "requiredProperties": list(self.required_properties),
            "allowedFileTypes": sorted(self.allowed_file_types),
        }


_TEMPLATES: dict[DocumentType, DocumentTemplate] = {
    DocumentType.GENERIC_DOCUMENT: DocumentTemplate(
        type=DocumentType.GENERIC_DOCUMENT,
        required_properties=("title", "description"),
        allowed_file_types=frozenset({
            "application/pdf",
            "text/plain",
            "image/png",
            "image/jpeg",
            "image/gif",
        }),
    ),
    DocumentType.GENERIC_CERTIFICATE: DocumentTemplate(
        type=DocumentType.GENERIC_CERTIFICATE,
        required_properties=("title", "issuer", "validFrom", "validTo"),
        allowed_file_types=frozenset({
            "application/pdf",
            "image/png",
            "image/jpeg",
        }),
    ),
    DocumentType.GAA_BAP_CERTIFICATE: DocumentTemplate(
        type=DocumentType.GAA_BAP_CERTIFICATE,
        required_properties=(
            "certificateNumber",
            "facility",
            "issuer",
            "validFrom",
            "validTo",
            "auditDate",
        ),
        allowed_file_types=frozenset({"application/pdf"}),
    ),
}

# Every enum member must have a template
assert set(_TEMPLATES) == set(DocumentType), "DocumentType without template"

TEMPLATES: Mapping[DocumentType, DocumentTemplate] = MappingProxyType(_TEMPLATES)


def lookup_template(document_type: str) -> Optional[DocumentTemplate]:
    """Find the template for a document type name.

    Args:
        document_type: Wire value of the type (e.g., 'Generic Certificate')

    Returns:
        The template, or None when the type is unknown

    Example:
        >>> lookup_template('GAA BAP Certificate').allowed_file_types
        frozenset({'application/pdf'})
        >>> lookup_template('Invoice') is None
        True
    """
    try:
        return TEMPLATES[DocumentType(document_type)]
    except ValueError:
        return None


def list_document_types() -> list[str]:
    """List the wire values of all document types, in declaration order"""
    return [document_type.value for document_type in DocumentType]
