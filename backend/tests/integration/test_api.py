"""HTTP tests for the operator, administrator, and portal routers"""

import base64
from datetime import datetime
from uuid import UUID

import pytest

from docrequest.domain.errors import InvalidOrExpiredTokenError, UploadRejectedError
from docrequest.models import DocumentRequest


def b64(content):
    return base64.b64encode(content).decode("ascii")


@pytest.fixture
def created(operator_client, opportunity_config):
    response = operator_client.post("/api/v1/document-requests", json={
        "originating_type": "opportunity",
        "originating_id": "opp-1",
        "instructions": "Please upload last year's tax return.",
    })
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def token(db_session, created):
    return db_session.get(DocumentRequest, UUID(created["request_id"])).token


class TestOperatorAuthentication:

    def test_missing_token(self, client):
        response = client.post("/api/v1/document-requests", json={})
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get(
            "/api/v1/document-requests/recipient-preview",
            params={"originating_type": "opportunity", "originating_id": "opp-1"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401


class TestDocumentRequestsApi:

    def test_create_and_get(self, operator_client, created, notifier):
        assert created["display_number"].startswith("DR-")

        response = operator_client.get(f"/api/v1/document-requests/{created['request_id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Sent"
        assert body["requested_by"] == "op-1"
        assert body["recipient_email"] == "ada@example.com"
        assert len(notifier.sent) == 1

    def test_create_rejects_unknown_fields(self, operator_client, opportunity_config):
        response = operator_client.post("/api/v1/document-requests", json={
            "originating_type": "opportunity",
            "originating_id": "opp-1",
            "instructions": "x",
            "token": "chosen-by-client",
        })
        assert response.status_code == 422

    def test_create_missing_email(self, operator_client, opportunity_config):
        response = operator_client.post("/api/v1/document-requests", json={
            "originating_type": "opportunity",
            "originating_id": "opp-blank-email",
            "instructions": "Upload ID",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "MISSING_RECIPIENT_EMAIL"

    def test_create_unconfigured_type(self, operator_client):
        response = operator_client.post("/api/v1/document-requests", json={
            "originating_type": "invoice",
            "originating_id": "inv-1",
            "instructions": "Upload ID",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "NOT_CONFIGURED"

    def test_broken_path_hides_details(self, db_session, operator_client, opportunity_config):
        opportunity_config.recipient_email_path = "owner.email"
        db_session.commit()

        response = operator_client.post("/api/v1/document-requests", json={
            "originating_type": "opportunity",
            "originating_id": "opp-1",
            "instructions": "Upload ID",
        })

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "INVALID_FIELD_PATH"
        assert "owner" not in body["message"]
        assert body["details"] == {}

    def test_recipient_preview(self, operator_client, opportunity_config):
        response = operator_client.get(
            "/api/v1/document-requests/recipient-preview",
            params={"originating_type": "opportunity", "originating_id": "opp-no-contact"},
        )
        assert response.status_code == 200
        assert response.json() == {"name": None, "email": None, "has_email": False}

    def test_request_types_for_quick_action(self, operator_client, opportunity_config):
        response = operator_client.get("/api/v1/document-requests/entity-types")

        assert response.status_code == 200
        assert response.json() == {
            "items": [{"type_id": "opportunity", "quick_action_label": "Request Documents"}],
        }

    def test_download_url_for_staged_file(self, client, operator_client, created, token):
        client.post("/api/v1/portal/uploads", json={
            "token": token,
            "files": [{"file_name": "return.pdf", "base64_data": b64(b"%PDF tax")}],
        })
        artifact = operator_client.get(f"/api/v1/document-requests/{created['request_id']}/files").json()["items"][0]

        response = operator_client.get(
            f"/api/v1/document-requests/files/{artifact['id']}/download-url",
            params={"expires_in": 600},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["expires_in_seconds"] == 600
        assert body["url"].startswith(f"https://storage.test/requests/{created['request_id']}/")

    def test_download_url_expiry_bounds(self, operator_client):
        response = operator_client.get(
            "/api/v1/document-requests/files/00000000-0000-0000-0000-000000000000/download-url",
            params={"expires_in": 5},
        )
        assert response.status_code == 422

    def test_unknown_request(self, operator_client):
        response = operator_client.get("/api/v1/document-requests/00000000-0000-0000-0000-000000000000")
        assert response.status_code == 404
        assert response.json()["error"] == "REQUEST_NOT_FOUND"

    def test_review_and_commit_flow(self, client, operator_client, created, token):
        upload = client.post("/api/v1/portal/uploads", json={
            "token": token,
            "files": [{"file_name": "return.pdf", "content_type": "application/pdf", "base64_data": b64(b"%PDF tax")}],
        })
        assert upload.status_code == 200

        request_id = created["request_id"]
        files = operator_client.get(f"/api/v1/document-requests/{request_id}/files").json()
        assert files["total"] == 1
        assert files["items"][0]["review_status"] == "Pending_Review"

        approved = operator_client.post(f"/api/v1/document-requests/{request_id}/files/approve-pending")
        assert approved.json() == {"approved": 1}

        first = operator_client.post(f"/api/v1/document-requests/{request_id}/commit")
        second = operator_client.post(f"/api/v1/document-requests/{request_id}/commit")

        assert first.status_code == 200
        assert first.json()["status"] == "Approved"
        assert first.json()["linked_count"] == 1
        assert second.json() == first.json()

    def test_commit_without_files_is_conflict(self, operator_client, created):
        response = operator_client.post(f"/api/v1/document-requests/{created['request_id']}/commit")
        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_STATE"

    def test_reject_file_requires_reason(self, operator_client):
        response = operator_client.post(
            "/api/v1/document-requests/files/00000000-0000-0000-0000-000000000000/reject",
            json={"reason": ""},
        )
        assert response.status_code == 422


class TestPortalApi:

    def test_session_view(self, client, created, token):
        response = client.get("/api/v1/portal/session", params={"token": token})

        assert response.status_code == 200
        body = response.json()
        assert body["display_number"] == created["display_number"]
        assert body["allowed_extensions"] == ["jpg", "pdf"]
        assert body["existing_file_count"] == 0
        for hidden in ("originating_id", "originating_type", "recipient_email", "recipient_ref", "token_expires_at"):
            assert hidden not in body

    @pytest.mark.parametrize("bad_token", ["garbage", "00000000-0000-0000-0000-000000000000"])
    def test_invalid_tokens_are_indistinguishable(self, client, created, bad_token):
        response = client.get("/api/v1/portal/session", params={"token": bad_token})

        assert response.status_code == 404
        assert response.json() == {
            "error": "INVALID_OR_EXPIRED_TOKEN",
            "message": InvalidOrExpiredTokenError.GENERIC_MESSAGE,
            "details": {},
        }

    def test_missing_token_parameter_is_generic(self, client):
        response = client.get("/api/v1/portal/session")
        assert response.status_code == 404
        assert response.json()["error"] == "INVALID_OR_EXPIRED_TOKEN"

    def test_limit_violation_names_limit(self, client, token):
        response = client.post("/api/v1/portal/uploads", json={
            "token": token,
            "files": [{"file_name": "contract.docx", "base64_data": b64(b"PK docx")}],
        })

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "UPLOAD_LIMIT_EXCEEDED"
        assert body["details"] == {"limit": "allowed_extensions"}

    def test_malformed_upload_body_is_generic(self, client, token):
        response = client.post("/api/v1/portal/uploads", json={"token": token, "files": "nope"})

        assert response.status_code == 400
        assert response.json()["message"] == UploadRejectedError.GENERIC_MESSAGE

    def test_upload_updates_session(self, client, token):
        client.post("/api/v1/portal/uploads", json={
            "token": token,
            "files": [{"file_name": "a.jpg", "base64_data": b64(b"\xff\xd8jpeg")}],
        })

        response = client.get("/api/v1/portal/session", params={"token": token})
        assert response.json()["existing_file_count"] == 1


class TestAdminApi:

    CONFIG = {
        "recipient_email_path": "contact.email",
        "recipient_name_path": "contact.name",
        "default_expiration_days": 14,
        "max_file_size_bytes": 1_000_000,
        "max_files_per_upload": 5,
        "allowed_extensions": [".PDF", "png", "pdf"],
    }

    def test_operator_is_forbidden(self, operator_client):
        response = operator_client.get("/api/v1/entity-type-configs")
        assert response.status_code == 403

    def test_upsert_normalizes_and_lists(self, admin_client):
        response = admin_client.put("/api/v1/entity-type-configs/case", json=self.CONFIG)

        assert response.status_code == 200
        assert response.json()["allowed_extensions"] == ["pdf", "png"]

        listing = admin_client.get("/api/v1/entity-type-configs").json()
        assert [item["type_id"] for item in listing["items"]] == ["case"]

    def test_upsert_rejects_malformed_path(self, admin_client):
        response = admin_client.put(
            "/api/v1/entity-type-configs/case",
            json={**self.CONFIG, "recipient_email_path": "contact..email"},
        )
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "recipient_email_path"

    def test_update_is_visible_to_new_requests(self, admin_client, operator_client, opportunity_config):
        # Warm the registry cache
        assert operator_client.get(
            "/api/v1/document-requests/recipient-preview",
            params={"originating_type": "opportunity", "originating_id": "opp-1"},
        ).status_code == 200

        admin_client.put("/api/v1/entity-type-configs/opportunity", json={
            **self.CONFIG,
            "recipient_ref_path": "contact.id",
            "allowed_extensions": ["pdf", "jpg"],
        })

        created = operator_client.post("/api/v1/document-requests", json={
            "originating_type": "opportunity",
            "originating_id": "opp-1",
            "instructions": "Upload ID",
        }).json()
        request = operator_client.get(f"/api/v1/document-requests/{created['request_id']}").json()

        lifetime = datetime.fromisoformat(request["token_expires_at"]) - datetime.fromisoformat(request["requested_at"])
        assert lifetime.days == 14

    def test_deactivate_blocks_creation(self, admin_client, operator_client, opportunity_config):
        response = admin_client.delete("/api/v1/entity-type-configs/opportunity")
        assert response.json()["is_active"] is False

        created = operator_client.post("/api/v1/document-requests", json={
            "originating_type": "opportunity",
            "originating_id": "opp-1",
            "instructions": "Upload ID",
        })
        assert created.status_code == 422
        assert created.json()["error"] == "NOT_CONFIGURED"


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert b"docrequest_" in response.content

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

        generated = client.get("/health")
        assert generated.headers["X-Request-ID"]
