"""Integration tests for request creation, sending, and commit.

Runs the DocumentRequestService against a real SQLite database with the
in-memory collaborators from conftest.
"""

import base64
from datetime import timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from docrequest.config import get_settings
from docrequest.domain.errors import (
    InvalidFieldPathError,
    InvalidStateError,
    MissingRecipientEmailError,
    NotConfiguredError,
    RecordNotFoundError,
    RequestNotFoundError,
    RequestValidationFailedError,
)
from docrequest.domain.requests.tokens import is_well_formed_token
from docrequest.domain.uploads import IncomingFile
from docrequest.models import ArtifactLink, AuditLog, DocumentRequest, ReviewAssignment
from docrequest.requests.service import DocumentRequestService
from docrequest.utils.time import utc_now


def b64(content):
    return base64.b64encode(content).decode("ascii")


def upload_pdf(upload_handler, request, name="contract.pdf", content=b"%PDF-1.4 contract"):
    return upload_handler.upload(request.token, [IncomingFile(file_name=name, base64_data=b64(content))])


def actions(db_session, request_id):
    return [
        entry.action for entry in db_session.query(AuditLog).filter(
            AuditLog.entity_id == str(request_id)
        ).order_by(AuditLog.created_at)
    ]


class TestCreateRequest:

    def test_create_sends_and_notifies(self, db_session, request_service, notifier, opportunity_config):
        created = request_service.create_request(
            originating_type="opportunity",
            originating_id="opp-1",
            instructions="  Please upload your signed contract.  ",
            requested_by="op-1",
            internal_notes="renewal paperwork",
        )

        request = db_session.get(DocumentRequest, created.request_id)
        assert request.status == "Sent"
        assert created.display_number == request.display_number
        assert request.display_number.startswith("DR-")
        assert is_well_formed_token(request.token)
        assert request.instructions == "Please upload your signed contract."
        assert request.recipient_email == "ada@example.com"
        assert request.recipient_name == "Ada Lovelace"
        assert request.recipient_ref == "c-1"
        assert request.file_count == 0
        assert request.token_expires_at - request.requested_at == timedelta(days=7)

        assert len(notifier.sent) == 1
        message = notifier.sent[0]
        assert message["template_id"] == "tmpl-document-request"
        assert message["recipient_email"] == "ada@example.com"
        fields = message["merge_fields"]
        assert fields["requestNumber"] == request.display_number
        assert fields["recipientName"] == "Ada Lovelace"
        assert fields["uploadUrl"] == f"{get_settings().PORTAL_BASE_URL}?token={request.token}"
        assert fields["expirationDate"] == request.token_expires_at.date().isoformat()

        assert actions(db_session, request.id) == ["REQUEST_CREATED"]

    def test_display_numbers_are_sequential_and_tokens_unique(self, db_session, request_service, opportunity_config):
        first = request_service.create_request("opportunity", "opp-1", "First", "op-1")
        second = request_service.create_request("opportunity", "opp-1", "Second", "op-1")

        assert first.display_number != second.display_number
        assert int(second.display_number[3:]) == int(first.display_number[3:]) + 1
        tokens = {db_session.get(DocumentRequest, c.request_id).token for c in (first, second)}
        assert len(tokens) == 2

    def test_expiration_override(self, db_session, request_service, opportunity_config):
        created = request_service.create_request(
            "opportunity", "opp-1", "Upload ID", "op-1", expiration_override_days=30
        )
        request = db_session.get(DocumentRequest, created.request_id)
        assert request.token_expires_at - request.requested_at == timedelta(days=30)

    @pytest.mark.parametrize("override", [0, -1, 10_000])
    def test_expiration_override_out_of_range(self, request_service, opportunity_config, override):
        with pytest.raises(RequestValidationFailedError):
            request_service.create_request(
                "opportunity", "opp-1", "Upload ID", "op-1", expiration_override_days=override
            )

    def test_blank_instructions_rejected(self, db_session, request_service, opportunity_config):
        with pytest.raises(RequestValidationFailedError):
            request_service.create_request("opportunity", "opp-1", "   ", "op-1")
        assert db_session.query(DocumentRequest).count() == 0

    def test_missing_email_creates_nothing(self, db_session, request_service, notifier, opportunity_config):
        with pytest.raises(MissingRecipientEmailError):
            request_service.create_request("opportunity", "opp-no-contact", "Upload ID", "op-1")

        assert db_session.query(DocumentRequest).count() == 0
        assert notifier.sent == []

    def test_unconfigured_type(self, db_session, request_service):
        with pytest.raises(NotConfiguredError):
            request_service.create_request("opportunity", "opp-1", "Upload ID", "op-1")
        assert db_session.query(DocumentRequest).count() == 0

    def test_broken_path_is_configuration_error(self, db_session, request_service, opportunity_config):
        opportunity_config.recipient_email_path = "owner.email"
        db_session.commit()

        with pytest.raises(InvalidFieldPathError):
            request_service.create_request("opportunity", "opp-1", "Upload ID", "op-1")

    def test_unknown_record(self, request_service, opportunity_config):
        with pytest.raises(RecordNotFoundError):
            request_service.create_request("opportunity", "opp-missing", "Upload ID", "op-1")

    def test_notification_failure_keeps_request(
        self, db_session, record_access, failing_notifier, assignments, opportunity_config
    ):
        service = DocumentRequestService(db_session, record_access, failing_notifier, assignments)
        created = service.create_request("opportunity", "opp-1", "Upload ID", "op-1")

        assert db_session.get(DocumentRequest, created.request_id).status == "Sent"


class TestPreviewRecipient:

    def test_preview_with_email(self, request_service, opportunity_config):
        preview = request_service.preview_recipient("opportunity", "opp-1")
        assert preview.has_email is True
        assert preview.email == "ada@example.com"
        assert preview.name == "Ada Lovelace"

    def test_preview_without_email(self, request_service, opportunity_config):
        preview = request_service.preview_recipient("opportunity", "opp-blank-email")
        assert preview.has_email is False
        assert preview.email is None


class TestSendRequest:

    def test_draft_then_send(self, db_session, request_service, notifier, opportunity_config):
        created = request_service.create_request("opportunity", "opp-1", "Upload ID", "op-1", send=False)
        assert db_session.get(DocumentRequest, created.request_id).status == "Draft"
        assert notifier.sent == []

        request = request_service.send_request(created.request_id, "op-1")

        assert request.status == "Sent"
        assert len(notifier.sent) == 1
        assert actions(db_session, request.id) == ["REQUEST_CREATED", "REQUEST_SENT"]

    def test_send_twice_is_invalid(self, request_service, sent_request):
        with pytest.raises(InvalidStateError):
            request_service.send_request(sent_request.id, "op-1")

    def test_send_expired_draft(self, db_session, request_service, opportunity_config):
        created = request_service.create_request("opportunity", "opp-1", "Upload ID", "op-1", send=False)
        request = db_session.get(DocumentRequest, created.request_id)
        request.token_expires_at = utc_now() - timedelta(minutes=1)
        db_session.commit()

        with pytest.raises(InvalidStateError):
            request_service.send_request(request.id, "op-1")

        db_session.refresh(request)
        assert request.status == "Expired"

    def test_unknown_request(self, request_service):
        from uuid import uuid4

        with pytest.raises(RequestNotFoundError):
            request_service.send_request(uuid4(), "op-1")


class TestCommitApprovedFiles:

    def test_commit_links_approved_files(
        self, db_session, request_service, review_service, upload_handler, sent_request
    ):
        upload_pdf(upload_handler, sent_request, "contract.pdf")
        upload_pdf(upload_handler, sent_request, "id.pdf", b"%PDF-1.4 id")
        artifacts = request_service.list_request_files(sent_request.id)
        review_service.approve_file(artifacts[0].id, "op-1")
        review_service.reject_file(artifacts[1].id, "op-1", "Illegible scan")

        result = request_service.commit_approved_files(sent_request.id, "op-1")

        assert result.status == "Approved"
        assert result.linked_count == 1
        assert result.review_completed_at is not None

        links = db_session.query(ArtifactLink).all()
        assert [(l.artifact_id, l.entity_type, l.entity_id) for l in links] == [
            (artifacts[0].id, "opportunity", "opp-1")
        ]
        assignment = db_session.query(ReviewAssignment).filter_by(request_id=sent_request.id).one()
        assert assignment.status == "COMPLETED"
        assert "REQUEST_COMMITTED" in actions(db_session, sent_request.id)

    def test_commit_is_idempotent(self, db_session, request_service, review_service, upload_handler, sent_request):
        upload_pdf(upload_handler, sent_request)
        review_service.approve_pending_files(sent_request.id, "op-1")

        first = request_service.commit_approved_files(sent_request.id, "op-1")
        second = request_service.commit_approved_files(sent_request.id, "op-2")

        assert first == second
        assert db_session.query(ArtifactLink).count() == 1
        assert actions(db_session, sent_request.id).count("REQUEST_COMMITTED") == 1

    def test_commit_straight_from_files_received(
        self, db_session, request_service, upload_handler, sent_request
    ):
        upload_pdf(upload_handler, sent_request)
        artifact = request_service.list_request_files(sent_request.id)[0]
        artifact.review_status = "Approved"
        db_session.commit()

        result = request_service.commit_approved_files(sent_request.id, "op-1")
        assert result.status == "Approved"
        assert result.linked_count == 1

    def test_nothing_approved(self, request_service, upload_handler, sent_request):
        upload_pdf(upload_handler, sent_request)

        with pytest.raises(InvalidStateError):
            request_service.commit_approved_files(sent_request.id, "op-1")

    def test_commit_before_any_upload(self, request_service, sent_request):
        with pytest.raises(InvalidStateError):
            request_service.commit_approved_files(sent_request.id, "op-1")

    def test_commit_after_expiry(self, db_session, request_service, review_service, upload_handler, sent_request):
        upload_pdf(upload_handler, sent_request)
        review_service.approve_pending_files(sent_request.id, "op-1")
        sent_request.token_expires_at = utc_now() - timedelta(seconds=1)
        db_session.commit()

        with pytest.raises(InvalidStateError):
            request_service.commit_approved_files(sent_request.id, "op-1")

        db_session.refresh(sent_request)
        assert sent_request.status == "Expired"
        assert db_session.query(ArtifactLink).count() == 0

    def test_commit_of_rejected_request(self, request_service, review_service, upload_handler, sent_request):
        upload_pdf(upload_handler, sent_request)
        review_service.reject_request(sent_request.id, "op-1", "Wrong documents")

        with pytest.raises(InvalidStateError):
            request_service.commit_approved_files(sent_request.id, "op-1")

    def test_commit_after_another_commit_returns_its_result(
        self, db_session, db_engine, request_service, review_service, upload_handler, sent_request
    ):
        upload_pdf(upload_handler, sent_request)
        review_service.approve_pending_files(sent_request.id, "op-1")
        assert sent_request.status == "Under_Review"

        # A concurrent committer wins the transition first
        other = sessionmaker(bind=db_engine)()
        try:
            winner = other.get(DocumentRequest, sent_request.id)
            winner.status = "Approved"
            winner.review_completed_at = utc_now()
            other.commit()
        finally:
            other.close()

        result = request_service.commit_approved_files(sent_request.id, "op-2")

        assert result.status == "Approved"
        assert db_session.query(ArtifactLink).count() == 0

    def test_losing_the_transition_race_returns_winner_result(
        self, db_session, db_engine, request_service, record_access, review_service,
        upload_handler, sent_request, monkeypatch
    ):
        upload_pdf(upload_handler, sent_request)
        review_service.approve_pending_files(sent_request.id, "op-1")
        request_id = sent_request.id
        fetch = record_access.fetch

        # The other committer wins between this caller's checks and its UPDATE
        def fetch_while_another_commit_wins(entity_type, entity_id, field_paths):
            record = fetch(entity_type, entity_id, field_paths)
            other = sessionmaker(bind=db_engine)()
            try:
                other.execute(
                    update(DocumentRequest)
                    .where(DocumentRequest.id == request_id)
                    .values(status="Approved", review_completed_at=utc_now())
                )
                other.commit()
            finally:
                other.close()
            return record

        monkeypatch.setattr(record_access, "fetch", fetch_while_another_commit_wins)

        result = request_service.commit_approved_files(request_id, "op-2")

        assert result.status == "Approved"
        assert result.linked_count == 0
        assert db_session.query(ArtifactLink).count() == 0
        assert "REQUEST_COMMITTED" not in actions(db_session, request_id)
