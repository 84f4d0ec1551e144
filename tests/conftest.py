"""
Shared fixtures: in-memory database, host data and a fake detection client.
"""

import os

# must be set before aidetect creates its engine
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aidetect.db.base import Base
from aidetect import models  # noqa
from aidetect.core.config import settings
from aidetect.core.errors import TransportError
from aidetect.models.course import CourseModule, GroupMember
from aidetect.models.module_config import ModuleConfig
from aidetect.models.user import User
from aidetect.schemas.detection import DetectionResponse
from aidetect.services import host_directory

TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def detection_settings(monkeypatch):
    """Detection switched on with a dummy key for every test."""
    monkeypatch.setattr(settings, "DETECTION_ENABLED", True)
    monkeypatch.setattr(settings, "DETECTION_API_KEY", "test-key")
    monkeypatch.setattr(settings, "DETECTION_API_URL", "https://detector.test/v3/lms")
    monkeypatch.setattr(settings, "DETECTION_ENABLED_MODULES", ["mod_assign"])
    return settings


@pytest.fixture(scope="function")
def db_session():
    """Create a test database session."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def make_user(db_session):
    def _make(username: str, role: str = "student", email: str | None = None) -> User:
        return _add(
            db_session,
            User(
                username=username,
                email=email if email is not None else f"{username}@school.test",
                name=username.title(),
                role=role,
            ),
        )

    return _make


@pytest.fixture
def test_teacher(make_user):
    return make_user("teacher", role="editingteacher")


@pytest.fixture
def test_student(make_user):
    return make_user("student")


@pytest.fixture
def course_module(db_session):
    return _add(
        db_session,
        CourseModule(course_id=7, module_type="assign", name="Essay 1", team_submission=False),
    )


@pytest.fixture
def team_module(db_session):
    return _add(
        db_session,
        CourseModule(course_id=7, module_type="assign", name="Group essay", team_submission=True),
    )


@pytest.fixture
def enable_detection(db_session):
    def _enable(module: CourseModule, **fields) -> ModuleConfig:
        values = {
            "use_detection": True,
            "show_student_results": False,
            "external_assignment_id": "ext-42",
            "creator_email": "teacher@school.test",
        }
        values.update(fields)
        return _add(db_session, ModuleConfig(cm_id=module.id, **values))

    return _enable


@pytest.fixture
def add_to_group(db_session):
    def _add_member(group_id: int, user: User, course_id: int = 7) -> GroupMember:
        return _add(
            db_session, GroupMember(group_id=group_id, course_id=course_id, user_id=user.id)
        )

    return _add_member


@pytest.fixture
def store_file(db_session):
    def _store(module, user, filename="essay.txt", content=b"my essay", mimetype="text/plain"):
        return host_directory.store_file(
            db_session,
            filename=filename,
            content=content,
            mimetype=mimetype,
            cm_id=module.id,
            user_id=user.id,
        )

    return _store


class FakeDetectionClient:
    """Records calls instead of talking to the network."""

    def __init__(self, response: DetectionResponse | None = None, error: Exception | None = None):
        self.response = response or DetectionResponse(
            success=True,
            predicted_class="ai",
            class_probability=0.873,
            confidence_category="high",
            scan_id="scan-1",
            scan_url="https://detector.test/scans/scan-1",
        )
        self.error = error
        self.calls: list[tuple] = []
        self.has_account_result = True

    def _answer(self):
        if self.error is not None:
            raise self.error
        return self.response

    def submit_file(self, file, params):
        self.calls.append(("file", file.filename, dict(params)))
        return self._answer()

    def submit_text(self, text, params):
        self.calls.append(("text", text, dict(params)))
        return self._answer()

    def create_assignment(self, user_name, user_email, user_id):
        self.calls.append(("assignment", user_name, user_email, user_id))
        if self.error is not None:
            raise self.error
        return "ext-99"

    def has_account(self, user_email):
        self.calls.append(("account", user_email))
        if self.error is not None:
            raise self.error
        return self.has_account_result


@pytest.fixture
def fake_client():
    return FakeDetectionClient()


@pytest.fixture
def failing_client():
    return FakeDetectionClient(error=TransportError("request to /submit failed: timed out"))


@pytest.fixture
def make_client():
    return FakeDetectionClient
