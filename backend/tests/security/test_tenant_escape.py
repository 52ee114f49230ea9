"""Security tests for cross-organization access

Tests cover:
- Organization taken from the token, never from the payload
- Writes on another organization's documents
- Guessing document IDs of private documents
"""

import io

import pytest

pytestmark = pytest.mark.security

API = "/kmf/api/documents/v1"


class TestOrgIdInjection:
    """Test the owning organization cannot be chosen by the client"""

    def test_organization_id_in_properties_ignored(self, post_document):
        response = post_document(
            "ACME",
            properties={
                "documentType": "Generic Document",
                "documentTitle": "Injected",
                "title": "Injected",
                "description": "Claims another owner",
                "organizationId": "GLOBEX",
            },
        )

        assert response.status_code == 201
        assert response.json()["organizationId"] == "ACME"


class TestCrossOrgWrites:
    """Test writes on documents of another organization"""

    def test_cannot_replace_content_of_hidden_document(self, post_document, client, auth_headers):
        created = post_document("ACME").json()

        response = client.put(
            f"{API}/documents/{created['id']}/content",
            files={"content": ("x.pdf", io.BytesIO(b"%PDF-1.7"), "application/pdf")},
            headers=auth_headers("GLOBEX"),
        )

        assert response.status_code == 404

    def test_cannot_attach_to_hidden_document(self, post_document, client, auth_headers):
        created = post_document("ACME").json()

        response = client.post(
            f"{API}/documents/{created['id']}/attachments",
            data={"type": "Lab Report"},
            files={"content": ("x.csv", io.BytesIO(b"x"), "text/csv")},
            headers=auth_headers("GLOBEX"),
        )

        assert response.status_code == 404

    def test_cannot_delete_hidden_document(self, post_document, client, auth_headers):
        created = post_document("ACME").json()

        response = client.delete(f"{API}/documents/{created['id']}", headers=auth_headers("GLOBEX"))

        assert response.status_code == 404
        assert client.get(f"{API}/documents/{created['id']}", headers=auth_headers("ACME")).status_code == 200


class TestDocumentIdGuessing:
    """Test malicious document IDs"""

    @pytest.mark.parametrize("document_id", [
        "' OR '1'='1",
        "1; DROP TABLE document; --",
        "does-not-exist",
    ])
    def test_injection_in_document_id(self, post_document, client, auth_headers, document_id):
        post_document("ACME")

        response = client.get(f"{API}/documents/{document_id}", headers=auth_headers("GLOBEX"))

        assert response.status_code == 404
        assert client.get(f"{API}/categories").status_code == 200
