import os
from datetime import datetime, timezone

TEST_DB_FILE = "test_classroom_tasks.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before the app modules read their config
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["SYNC_INTERVAL_SECONDS"] = "0"
os.environ["STORAGE_BACKEND"] = "local"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.core.deps import get_db
from app.core.firebase import Identity, InvalidCredentials, get_identity_provider
from app.core.storage import LocalStorage, get_storage
from app.db.base import Base
from app.main import app
from app.models.category import Category
from app.models.classroom import Classroom
from app.models.classroom_member import ClassroomMember
from app.models.classroom_task import ClassroomTask
from app.models.task import Task
from app.models.user import User

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

HW1_DEADLINE = datetime(2025, 1, 10, tzinfo=timezone.utc)

SESSION_PREFIX = "session-"


class FakeIdentityProvider:
    """Stands in for Firebase Auth: known tokens map to identities."""

    def __init__(self):
        self.identities = {
            "token-teacher-1": Identity(
                uid="teacher-1",
                email="teacher1@example.com",
                name="Teacher One",
                sign_in_provider="password",
            ),
            "token-student-1": Identity(
                uid="student-1",
                email="student1@example.com",
                name="Student One",
                sign_in_provider="password",
            ),
            "token-student-2": Identity(
                uid="student-2",
                email="student2@example.com",
                name="Student Two",
                sign_in_provider="password",
            ),
            # Google identity sharing student-1's email
            "google-student-1": Identity(
                uid="google-uid-1",
                email="student1@example.com",
                name="Student G",
                picture="https://lh3.googleusercontent.com/a/student-g",
                sign_in_provider="google.com",
            ),
        }
        self.revoked: set[str] = set()

    def add(self, token: str, identity: Identity) -> None:
        self.identities[token] = identity

    def verify_id_token(self, id_token: str) -> Identity:
        if id_token == "expired-token":
            raise InvalidCredentials("auth/id-token-expired")
        identity = self.identities.get(id_token)
        if identity is None:
            raise InvalidCredentials("auth/invalid-credential")
        return identity

    def create_session_cookie(self, id_token: str, expires_in=None) -> str:
        self.verify_id_token(id_token)
        return SESSION_PREFIX + id_token

    def verify_session_cookie(self, session_cookie: str) -> Identity:
        if not session_cookie.startswith(SESSION_PREFIX):
            raise InvalidCredentials("auth/invalid-credential")
        identity = self.identities.get(session_cookie[len(SESSION_PREFIX) :])
        if identity is None:
            raise InvalidCredentials("auth/invalid-credential")
        if identity.uid in self.revoked:
            raise InvalidCredentials("auth/session-cookie-revoked")
        return identity

    def revoke_refresh_tokens(self, uid: str) -> None:
        self.revoked.add(uid)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def login_as(client, token: str) -> None:
    """Replace the client's cookies with a session for ``token``."""
    client.cookies.clear()
    client.cookies.set("session", SESSION_PREFIX + token)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed_data():
    """Teacher-1 owns classroom C1 (code ABC123) with task t1 "HW1".

    Student-1 is a member and holds the synced copy; student-2 is in no classroom.
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Task).delete()
        db.query(ClassroomTask).delete()
        db.query(ClassroomMember).delete()
        db.query(Category).delete()
        db.query(Classroom).delete()
        db.query(User).delete()
        db.commit()

        db.add_all(
            [
                User(
                    uid="teacher-1",
                    email="teacher1@example.com",
                    display_name="Teacher One",
                    role="teacher",
                ),
                User(
                    uid="student-1",
                    email="student1@example.com",
                    display_name="Student One",
                    role="student",
                ),
                User(
                    uid="student-2",
                    email="student2@example.com",
                    display_name="Student Two",
                    role="student",
                ),
            ]
        )
        db.commit()

        db.add(Classroom(id="C1", name="Physics 101", code="ABC123", teacher_uid="teacher-1"))
        db.commit()

        db.add(
            ClassroomTask(
                id="t1",
                classroom_id="C1",
                task_name="HW1",
                description="Chapter 1 problems",
                dead_line=HW1_DEADLINE,
                category="Homework",
                files=[],
                created_by="teacher-1",
            )
        )
        db.add(ClassroomMember(classroom_id="C1", student_uid="student-1"))
        db.add(
            Task(
                id="copy-t1",
                owner_uid="student-1",
                task_name="HW1",
                description="Chapter 1 problems",
                category="Homework",
                priority_level=3,
                dead_line=HW1_DEADLINE,
                is_finished=False,
                attachments=[],
                classroom_id="C1",
                classroom_task_id="t1",
            )
        )
        db.commit()

        yield
    finally:
        db.close()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture()
def storage(tmp_path):
    return LocalStorage(tmp_path, "/media")


@pytest.fixture()
def client(identity_provider, storage):
    """Test client on the test DB with fake Firebase and local storage."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
