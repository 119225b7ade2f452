"""Pytest fixtures for document request testing.

Provides reusable test fixtures for:
- Database session on a fresh SQLite file per test
- In-memory fakes for record access, notifications, and artifact storage
- Services wired to those fakes
- API test clients (anonymous, operator, admin) with dependency overrides

Usage:
    def test_create(request_service, opportunity_config):
        created = request_service.create_request("opportunity", "opp-1", "Send ID", "op-1")
"""

import sys
import os
import copy
import hashlib
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Sequence
from uuid import UUID

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("PORTAL_BASE_URL", "https://portal.test/upload")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from docrequest.auth.jwt import create_access_token
from docrequest.database import get_db
from docrequest.domain.configs.registry import config_registry
from docrequest.domain.errors import RecordNotFoundError, StorageError
from docrequest.domain.ports.artifact_store_port import ArtifactStorePort, StoredArtifact
from docrequest.domain.ports.notification_port import NotificationPort
from docrequest.domain.ports.record_access_port import RecordAccessPort
from docrequest.infrastructure.assignments.sql_assignments import SqlReviewAssignments
from docrequest.models import Base, EntityTypeConfigRecord, DocumentRequest
from docrequest.portal.session import TokenSessionValidator
from docrequest.portal.upload import AnonymousUploadHandler
from docrequest.requests.review import ReviewService
from docrequest.requests.service import DocumentRequestService


# =============================================================================
# Collaborator fakes
# =============================================================================

class FakeRecordAccess(RecordAccessPort):
    """Serves records from a dict keyed by (entity_type, entity_id)."""

    def __init__(self, records: Optional[Dict[tuple, Dict[str, Any]]] = None):
        self.records = records or {}
        self.calls: List[tuple] = []

    def fetch(self, entity_type: str, entity_id: str, field_paths: Sequence[str]) -> Dict[str, Any]:
        self.calls.append((entity_type, entity_id, list(field_paths)))
        record = self.records.get((entity_type, entity_id))
        if record is None:
            raise RecordNotFoundError(f"Record {entity_type}/{entity_id} not found")
        return copy.deepcopy(record)


class FakeNotificationSender(NotificationPort):

    def __init__(self, fail: bool = False):
        self.sent: List[Dict[str, Any]] = []
        self.fail = fail

    def send(self, template_id, recipient_email, merge_fields) -> None:
        if self.fail:
            raise ConnectionError("broker unavailable")
        self.sent.append({
            "template_id": template_id,
            "recipient_email": recipient_email,
            "merge_fields": dict(merge_fields),
        })


class InMemoryArtifactStore(ArtifactStorePort):

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_on_store = False
        self.fail_after: Optional[int] = None

    def store_file(self, file, request_id: UUID, filename: str, content_type: str) -> StoredArtifact:
        if self.fail_on_store or (self.fail_after is not None and len(self.objects) >= self.fail_after):
            raise StorageError("store unavailable")
        content = file.read()
        if not content:
            raise ValueError("Cannot store empty file")
        sha256 = hashlib.sha256(content).hexdigest()
        key = f"requests/{request_id}/{sha256}-{len(self.objects):08x}.{filename.rsplit('.', 1)[-1]}"
        self.objects[key] = content
        return StoredArtifact(storage_key=key, sha256=sha256, size_bytes=len(content), content_type=content_type)

    def delete_file(self, storage_key: str) -> bool:
        self.deleted.append(storage_key)
        return self.objects.pop(storage_key, None) is not None

    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        return f"https://storage.test/{storage_key}?expires={expires_in_seconds}"


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="function")
def db_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'docrequest.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_config_registry():
    """The registry is process-scoped; start every test with an empty cache."""
    config_registry.invalidate_all()
    yield
    config_registry.invalidate_all()


# =============================================================================
# Domain data
# =============================================================================

@pytest.fixture
def opportunity_config(db_session: Session) -> EntityTypeConfigRecord:
    record = EntityTypeConfigRecord(
        type_id="opportunity",
        is_active=True,
        recipient_email_path="contact.email",
        recipient_name_path="contact.name",
        recipient_ref_path="contact.id",
        default_expiration_days=7,
        max_file_size_bytes=5_000_000,
        max_files_per_upload=3,
        allowed_extensions=["pdf", "jpg"],
        quick_action_label="Request Documents",
        notification_template_id="tmpl-document-request",
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def records() -> Dict[tuple, Dict[str, Any]]:
    return {
        ("opportunity", "opp-1"): {
            "id": "opp-1",
            "name": "Renewal 2026",
            "contact": {"id": "c-1", "name": "Ada Lovelace", "email": "ada@example.com"},
        },
        ("opportunity", "opp-no-contact"): {
            "id": "opp-no-contact",
            "name": "Orphan",
            "contact": None,
        },
        ("opportunity", "opp-blank-email"): {
            "id": "opp-blank-email",
            "name": "Blank",
            "contact": {"id": "c-2", "name": "Grace Hopper", "email": "   "},
        },
    }


@pytest.fixture
def record_access(records) -> FakeRecordAccess:
    return FakeRecordAccess(records)


@pytest.fixture
def notifier() -> FakeNotificationSender:
    return FakeNotificationSender()


@pytest.fixture
def failing_notifier() -> FakeNotificationSender:
    return FakeNotificationSender(fail=True)


@pytest.fixture
def artifact_store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def assignments(db_session: Session) -> SqlReviewAssignments:
    return SqlReviewAssignments(db_session)


@pytest.fixture
def request_service(db_session, record_access, notifier, assignments) -> DocumentRequestService:
    return DocumentRequestService(db_session, record_access, notifier, assignments)


@pytest.fixture
def review_service(db_session, assignments) -> ReviewService:
    return ReviewService(db_session, assignments)


@pytest.fixture
def validator(db_session) -> TokenSessionValidator:
    return TokenSessionValidator(db_session)


@pytest.fixture
def upload_handler(db_session, artifact_store, assignments) -> AnonymousUploadHandler:
    return AnonymousUploadHandler(db_session, artifact_store, assignments)


@pytest.fixture
def sent_request(db_session, request_service, opportunity_config) -> DocumentRequest:
    """A request in Sent status for opportunity opp-1."""
    created = request_service.create_request(
        originating_type="opportunity",
        originating_id="opp-1",
        instructions="Please upload your signed contract.",
        requested_by="op-1",
    )
    return db_session.get(DocumentRequest, created.request_id)


# =============================================================================
# API clients
# =============================================================================

@pytest.fixture
def app(db_session, record_access, notifier, artifact_store):
    from docrequest.main import app
    from docrequest.dependencies import (
        get_artifact_store,
        get_notification_sender,
        get_record_access,
    )

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_record_access] = lambda: record_access
    app.dependency_overrides[get_notification_sender] = lambda: notifier
    app.dependency_overrides[get_artifact_store] = lambda: artifact_store

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """Unauthenticated client (the portal needs no credentials)."""
    return TestClient(app)


@pytest.fixture
def operator_client(app) -> TestClient:
    token = create_access_token("op-1", "operator@example.com", "OPERATOR")
    client = TestClient(app)
    client.headers = {"Authorization": f"Bearer {token}"}
    return client


@pytest.fixture
def admin_client(app) -> TestClient:
    token = create_access_token("admin-1", "admin@example.com", "ADMIN")
    client = TestClient(app)
    client.headers = {"Authorization": f"Bearer {token}"}
    return client
