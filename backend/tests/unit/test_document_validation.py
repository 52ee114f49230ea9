"""Unit tests for document submission validation

Tests cover:
- Properties against templates (required properties, unknown types, shapes)
- Associations and the single traceable element rule
- Entitlement payloads
- Content file types
- Stage ordering of full submissions
"""

import pytest

from domain.documents import (
    DocumentType,
    DomainRuleViolation,
    EntitlementMode,
    StructuralError,
    TEMPLATES,
    TraceableCategory,
    UnsupportedMediaType,
    lookup_template,
    validate_associations,
    validate_document_submission,
    validate_entitlement,
    validate_file_type,
    validate_properties,
)


def generic_document_properties(**overrides):
    properties = {
        "documentType": "Generic Document",
        "documentTitle": "Supplier code of conduct",
        "title": "Code of conduct",
        "description": "Signed by the supplier",
    }
    properties.update(overrides)
    return properties


def certificate_properties(**overrides):
    properties = {
        "documentType": "Generic Certificate",
        "documentTitle": "Organic certificate",
        "title": "EU Organic",
        "issuer": "Control Union",
        "validFrom": "2026-01-01",
        "validTo": "2027-01-01",
    }
    properties.update(overrides)
    return properties


class TestValidateProperties:
    """Test properties validation against templates"""

    def test_valid_generic_document(self):
        properties = validate_properties(generic_document_properties())

        assert properties.document_type == "Generic Document"
        assert properties.document_title == "Supplier code of conduct"

    def test_template_specific_keys_are_kept(self):
        """Test keys not declared on the model survive validation verbatim"""
        properties = validate_properties(certificate_properties())

        data = properties.to_dict()
        assert data["issuer"] == "Control Union"
        assert data["validFrom"] == "2026-01-01"
        assert data["documentType"] == "Generic Certificate"

    def test_gaa_bap_missing_all_required_properties(self):
        """Test every missing required property is reported, in template order"""
        with pytest.raises(StructuralError) as exc_info:
            validate_properties({"documentType": "GAA BAP Certificate", "documentTitle": "X"})

        assert exc_info.value.missing_properties == [
            "certificateNumber",
            "facility",
            "issuer",
            "validFrom",
            "validTo",
            "auditDate",
        ]

    def test_empty_values_count_as_missing(self):
        raw = certificate_properties(issuer="", validTo="   ")

        with pytest.raises(StructuralError) as exc_info:
            validate_properties(raw)

        assert exc_info.value.missing_properties == ["issuer", "validTo"]

    def test_false_and_zero_are_not_empty(self):
        raw = generic_document_properties(title=0, description=False)

        properties = validate_properties(raw)

        assert properties.to_dict()["title"] == 0

    def test_unknown_document_type(self):
        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_properties(generic_document_properties(documentType="Invoice"))

        assert exc_info.value.rule == DomainRuleViolation.UNKNOWN_DOCUMENT_TYPE

    def test_explicit_template_must_match_document_type(self):
        template = TEMPLATES[DocumentType.GENERIC_CERTIFICATE]

        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_properties(generic_document_properties(), template)

        assert exc_info.value.rule == DomainRuleViolation.DOCUMENT_TYPE_MISMATCH

    def test_explicit_matching_template(self):
        template = TEMPLATES[DocumentType.GENERIC_CERTIFICATE]

        properties = validate_properties(certificate_properties(), template)

        assert properties.document_type == template.type.value

    def test_missing_document_title_is_structural(self):
        raw = generic_document_properties()
        del raw["documentTitle"]

        with pytest.raises(StructuralError):
            validate_properties(raw)

    def test_properties_must_be_an_object(self):
        with pytest.raises(StructuralError):
            validate_properties(["documentType", "Generic Document"])

    def test_invalid_issue_date(self):
        with pytest.raises(StructuralError) as exc_info:
            validate_properties(generic_document_properties(issueDate="next tuesday"))

        fields = [error["field"] for error in exc_info.value.details["errors"]]
        assert "issueDate" in fields

    def test_iso_dates_accepted(self):
        properties = validate_properties(generic_document_properties(
            issueDate="2026-03-01",
            expiryDate="2027-03-01T00:00:00Z",
        ))

        assert properties.issue_date == "2026-03-01"
        assert properties.expiry_date == "2027-03-01T00:00:00Z"

    def test_custom_property_with_unknown_format(self):
        raw = generic_document_properties(customProperties=[
            {"name": "batch", "value": "B-17", "format": "barcode"},
        ])

        with pytest.raises(StructuralError):
            validate_properties(raw)

    def test_custom_property_requires_name_and_value(self):
        raw = generic_document_properties(customProperties=[{"name": "batch"}])

        with pytest.raises(StructuralError):
            validate_properties(raw)

    def test_custom_property_numeric_value(self):
        raw = generic_document_properties(customProperties=[
            {"name": "weight", "value": 12.5},
            {"name": "facility", "value": "4012345000009", "format": "gln"},
        ])

        properties = validate_properties(raw)

        assert [p.name for p in properties.custom_properties] == ["weight", "facility"]

    def test_null_tag_list_is_malformed(self):
        with pytest.raises(StructuralError):
            validate_properties(generic_document_properties(tagList=None))

    def test_tag_list_of_numbers_is_malformed(self):
        with pytest.raises(StructuralError):
            validate_properties(generic_document_properties(tagList=[1, 2]))


class TestValidateAssociations:
    """Test association validation and the single traceable element rule"""

    def test_single_location_list_is_valid(self):
        associations = validate_associations({"locationGLNList": ["GLN1"]})

        assert associations.traceable_link.category == TraceableCategory.LOCATION
        assert associations.traceable_link.elements == ("GLN1",)

    def test_two_traceable_lists_violate_rule(self):
        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_associations({"locationGLNList": ["GLN1"], "productList": ["P1"]})

        assert exc_info.value.rule == DomainRuleViolation.SINGLE_TRACEABLE_ELEMENT
        assert "single traceable element" in exc_info.value.message
        assert exc_info.value.details["traceableElementLists"] == ["locationGLNList", "productList"]

    def test_empty_lists_do_not_count(self):
        associations = validate_associations({
            "locationGLNList": [],
            "productList": ["P1"],
            "epcList": [],
        })

        assert associations.traceable_link.category == TraceableCategory.PRODUCT

    def test_no_associations_is_valid(self):
        assert validate_associations(None).traceable_link is None
        assert validate_associations({}).traceable_link is None

    def test_event_and_transaction_lists_are_unconstrained(self):
        associations = validate_associations({
            "epcList": ["urn:epc:id:sgtin:0614141.107346.2017"],
            "eventIDList": ["EV1", "EV2"],
            "transactionIDList": ["TX1"],
        })

        assert associations.traceable_link.category == TraceableCategory.EPC
        assert associations.event_ids == ("EV1", "EV2")
        assert associations.transaction_ids == ("TX1",)

    def test_list_of_non_strings_is_structural(self):
        with pytest.raises(StructuralError):
            validate_associations({"productList": [42]})

    def test_validation_is_repeatable(self):
        raw = {"organizationList": ["ORG-9"], "eventIDList": ["EV1"]}

        assert validate_associations(raw) == validate_associations(raw)

    def test_to_dict_lists_all_six_fields(self):
        data = validate_associations({"productList": ["P1"]}).to_dict()

        assert data == {
            "locationGLNList": [],
            "productList": ["P1"],
            "organizationList": [],
            "epcList": [],
            "eventIDList": [],
            "transactionIDList": [],
        }


class TestValidateEntitlement:
    """Test entitlement validation"""

    def test_none_defaults_to_private(self):
        entitlement = validate_entitlement(None)

        assert entitlement.mode == EntitlementMode.PRIVATE
        assert entitlement.entitled_org_ids == ()

    def test_linked_with_entitled_orgs(self):
        entitlement = validate_entitlement({"mode": "linked", "entitledOrgIds": ["ACME", "GLOBEX"]})

        assert entitlement.mode == EntitlementMode.LINKED
        assert entitlement.entitled_org_ids == ("ACME", "GLOBEX")

    def test_private_accepts_entitled_orgs(self):
        entitlement = validate_entitlement({"mode": "private", "entitledOrgIds": ["ACME"]})

        assert entitlement.to_dict() == {"mode": "private", "entitledOrgIds": ["ACME"]}

    def test_unknown_mode(self):
        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_entitlement({"mode": "public"})

        assert exc_info.value.rule == DomainRuleViolation.INVALID_ENTITLEMENT_MODE

    def test_missing_mode_is_structural(self):
        with pytest.raises(StructuralError):
            validate_entitlement({"entitledOrgIds": ["ACME"]})

    def test_entitled_orgs_must_be_strings(self):
        with pytest.raises(StructuralError):
            validate_entitlement({"mode": "linked", "entitledOrgIds": "ACME"})


class TestValidateFileType:
    """Test content MIME type checks"""

    def test_zip_rejected_for_generic_certificate(self):
        template = lookup_template("Generic Certificate")

        with pytest.raises(UnsupportedMediaType) as exc_info:
            validate_file_type("application/zip", template)

        assert exc_info.value.allowed_types == ["application/pdf", "image/jpeg", "image/png"]

    def test_pdf_accepted(self):
        validate_file_type("application/pdf", lookup_template("GAA BAP Certificate"))

    def test_no_file_accepted(self):
        validate_file_type(None, lookup_template("GAA BAP Certificate"))

    def test_gif_only_for_generic_document(self):
        validate_file_type("image/gif", lookup_template("Generic Document"))

        with pytest.raises(UnsupportedMediaType):
            validate_file_type("image/gif", lookup_template("Generic Certificate"))


class TestValidateDocumentSubmission:
    """Test full submissions and the order of validation stages"""

    def test_valid_submission(self):
        submission = validate_document_submission(
            certificate_properties(),
            {"productList": ["P1"]},
            {"mode": "linked"},
            "application/pdf",
        )

        assert submission.template.type == DocumentType.GENERIC_CERTIFICATE
        assert submission.associations.traceable_link.elements == ("P1",)
        assert submission.entitlement.mode == EntitlementMode.LINKED

    def test_associations_taken_from_properties(self):
        submission = validate_document_submission(
            certificate_properties(locationGLNList=["GLN1"], eventIDList=["EV1"]),
        )

        assert submission.associations.traceable_link.category == TraceableCategory.LOCATION
        assert submission.associations.event_ids == ("EV1",)

    def test_property_associations_are_rule_checked(self):
        with pytest.raises(DomainRuleViolation):
            validate_document_submission(
                certificate_properties(locationGLNList=["GLN1"], epcList=["EPC1"]),
            )

    def test_properties_error_reported_before_association_error(self):
        with pytest.raises(StructuralError):
            validate_document_submission(
                {"documentType": "Generic Certificate", "documentTitle": "X"},
                {"locationGLNList": ["GLN1"], "productList": ["P1"]},
            )

    def test_association_error_reported_before_entitlement_error(self):
        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_document_submission(
                certificate_properties(),
                {"locationGLNList": ["GLN1"], "productList": ["P1"]},
                {"mode": "public"},
            )

        assert exc_info.value.rule == DomainRuleViolation.SINGLE_TRACEABLE_ELEMENT

    def test_file_type_checked_last(self):
        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_document_submission(
                certificate_properties(),
                None,
                {"mode": "public"},
                "application/zip",
            )

        assert exc_info.value.rule == DomainRuleViolation.INVALID_ENTITLEMENT_MODE

        with pytest.raises(UnsupportedMediaType):
            validate_document_submission(certificate_properties(), None, None, "application/zip")

    def test_property_associations_checked_when_associations_given(self):
        """Test lists embedded in properties cannot bypass the single traceable element rule"""
        with pytest.raises(DomainRuleViolation) as exc_info:
            validate_document_submission(
                certificate_properties(locationGLNList=["GLN1"], productList=["P1"]),
                {"epcList": ["E1"]},
            )

        assert exc_info.value.rule == DomainRuleViolation.SINGLE_TRACEABLE_ELEMENT

    def test_explicit_associations_replace_property_lists(self):
        submission = validate_document_submission(
            certificate_properties(locationGLNList=["GLN1"], eventIDList=["EV1"]),
            {"epcList": ["E1"]},
        )

        stored = submission.stored_properties()
        assert submission.associations.traceable_link.category == TraceableCategory.EPC
        assert stored["epcList"] == ["E1"]
        assert stored["locationGLNList"] == []
        assert stored["eventIDList"] == []
        assert stored["issuer"] == "Control Union"
