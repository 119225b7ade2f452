"""The ORM schema carries the same CHECK constraints as the migration"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from docrequest.domain.requests.tokens import generate_token
from docrequest.models import DocumentRequest, EntityTypeConfigRecord, FileArtifact
from docrequest.utils.time import utc_now


def make_request(**overrides):
    values = dict(
        display_number=f"DR-{uuid.uuid4().hex[:6]}",
        token=generate_token(),
        token_expires_at=utc_now() + timedelta(days=7),
        status="Sent",
        instructions="Upload your ID",
        originating_type="opportunity",
        originating_id="opp-1",
        recipient_email="ada@example.com",
        recipient_name="Ada Lovelace",
        requested_by="op-1",
        config_type_id="opportunity",
    )
    values.update(overrides)
    return DocumentRequest(**values)


def make_artifact(request_id, **overrides):
    values = dict(
        request_id=request_id,
        file_name="id.pdf",
        size_bytes=10,
        sha256="0" * 64,
        storage_key="requests/x/id.pdf",
        upload_source="Portal_Upload",
        review_status="Pending_Review",
    )
    values.update(overrides)
    return FileArtifact(**values)


def test_valid_rows_are_accepted(db_session):
    request = make_request()
    db_session.add(request)
    db_session.flush()
    db_session.add(make_artifact(request.id))
    db_session.commit()

    assert db_session.query(FileArtifact).count() == 1


@pytest.mark.parametrize("overrides", [
    {"status": "Closed"},
    {"token": "ABCDEF01-2345-6789-ABCD-EF0123456789"},
    {"file_count": -1},
])
def test_document_request_constraints(db_session, overrides):
    db_session.add(make_request(**overrides))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


@pytest.mark.parametrize("overrides", [
    {"review_status": "Maybe"},
    {"upload_source": "Email"},
    {"size_bytes": 0},
])
def test_file_artifact_constraints(db_session, overrides):
    request = make_request()
    db_session.add(request)
    db_session.commit()

    db_session.add(make_artifact(request.id, **overrides))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_entity_type_limits_must_be_positive(db_session):
    db_session.add(EntityTypeConfigRecord(
        type_id="case",
        recipient_email_path="email",
        max_files_per_upload=0,
        allowed_extensions=["pdf"],
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
