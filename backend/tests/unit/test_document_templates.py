"""Unit tests for the document template registry"""

import pytest

from domain.documents import (
    DocumentType,
    TEMPLATES,
    list_document_types,
    lookup_template,
)


class TestTemplateRegistry:
    """Test template lookup and listing"""

    def test_categories_in_declaration_order(self):
        assert list_document_types() == [
            "Generic Document",
            "Generic Certificate",
            "GAA BAP Certificate",
        ]

    def test_every_type_has_a_template(self):
        assert set(TEMPLATES) == set(DocumentType)

    def test_lookup_unknown_type(self):
        assert lookup_template("Invoice") is None
        assert lookup_template("generic document") is None

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            TEMPLATES[DocumentType.GENERIC_DOCUMENT] = None

    def test_template_to_dict(self):
        template = lookup_template("Generic Certificate")

        assert template.to_dict() == {
            "type": "Generic Certificate",
            "requiredProperties": ["title", "issuer", "validFrom", "validTo"],
            "allowedFileTypes": ["application/pdf", "image/jpeg", "image/png"],
        }

    def test_gaa_bap_accepts_only_pdf(self):
        template = lookup_template("GAA BAP Certificate")

        assert template.allowed_file_types == frozenset({"application/pdf"})
        assert template.required_properties[0] == "certificateNumber"
