from app.core.firebase import Identity
from app.models.user import User
from app.services.identity import resolve_canonical_uid
from tests.conftest import login_as

GOOGLE_STUDENT_1 = Identity(
    uid="google-uid-1",
    email="student1@example.com",
    name="Student G",
    sign_in_provider="google.com",
)


def _link_student_1(db):
    user = db.get(User, "student-1")
    user.google_linked = True
    user.google_uid = "google-uid-1"
    user.google_email = "student1@example.com"
    db.commit()


def test_canonical_uid_is_own_row_when_present(db):
    identity = Identity(uid="student-2", email="student2@example.com")
    assert resolve_canonical_uid(db, identity) == "student-2"


def test_canonical_uid_follows_google_link(db):
    assert resolve_canonical_uid(db, GOOGLE_STUDENT_1) == "google-uid-1"

    _link_student_1(db)
    assert resolve_canonical_uid(db, GOOGLE_STUDENT_1) == "student-1"


def test_google_login_with_unlinked_email_is_forbidden(client, db):
    r = client.post("/auth/login", json={"idToken": "google-student-1"})
    assert r.status_code == 403
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "EMAIL_EXISTS_NOT_LINKED"
    assert body["existingEmail"] == "student1@example.com"
    assert "set-cookie" not in r.headers

    assert db.get(User, "google-uid-1") is None


def test_link_then_google_login_resolves_to_linked_account(client, db):
    login_as(client, "token-student-1")
    r = client.post("/auth/link-google", json={"googleIdToken": "google-student-1"})
    assert r.status_code == 200, r.text
    assert r.json()["success"] is True

    user = db.get(User, "student-1")
    assert user.google_linked is True
    assert user.google_uid == "google-uid-1"
    assert user.google_email == "student1@example.com"
    assert user.display_name == "Student G"
    assert user.original_display_name == "Student One"

    client.cookies.clear()
    r = client.post("/auth/login", json={"idToken": "google-student-1"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["uid"] == "student-1"
    assert body["linkedAccount"] is True
    assert body["message"] == "Login successful with linked Google account"

    # requests made with the Google session act on the linked account
    login_as(client, "google-student-1")
    r = client.get("/profile")
    assert r.status_code == 200, r.text
    assert r.json()["uid"] == "student-1"
    assert r.json()["classrooms"] == ["C1"]
    assert db.get(User, "google-uid-1") is None


def test_unlink_restores_original_profile(client, db):
    login_as(client, "token-student-1")
    r = client.post("/auth/link-google", json={"googleIdToken": "google-student-1"})
    assert r.status_code == 200, r.text

    r = client.delete("/auth/link-google")
    assert r.status_code == 200, r.text

    db.expire_all()
    user = db.get(User, "student-1")
    assert user.google_linked is False
    assert user.google_uid is None
    assert user.google_email is None
    assert user.display_name == "Student One"
    assert user.photo_url is None
    assert user.original_display_name is None


def test_link_requires_google_provider(client):
    login_as(client, "token-student-2")
    r = client.post("/auth/link-google", json={"googleIdToken": "token-student-2"})
    assert r.status_code == 400
    assert r.json()["error"] == "Invalid provider. Must be Google."


def test_link_rejects_email_mismatch(client, db):
    login_as(client, "token-student-2")
    r = client.post("/auth/link-google", json={"googleIdToken": "google-student-1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Email mismatch"

    assert db.get(User, "student-2").google_linked is False


def test_link_twice_is_rejected(client):
    login_as(client, "token-student-1")
    r = client.post("/auth/link-google", json={"googleIdToken": "google-student-1"})
    assert r.status_code == 200, r.text

    r = client.post("/auth/link-google", json={"googleIdToken": "google-student-1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Google account is already linked"


def test_link_google_uid_with_its_own_account_conflicts(client, identity_provider, db):
    identity_provider.add(
        "google-student-2",
        Identity(uid="g-s2", email="student2@example.com", sign_in_provider="google.com"),
    )
    db.add(User(uid="g-s2", email="someone@example.com", role="student"))
    db.commit()

    login_as(client, "token-student-2")
    r = client.post("/auth/link-google", json={"googleIdToken": "google-student-2"})
    assert r.status_code == 409


def test_unlink_when_not_linked(client):
    login_as(client, "token-student-2")
    r = client.delete("/auth/link-google")
    assert r.status_code == 400
    assert r.json()["error"] == "Google account is not linked"


def test_google_primary_account_cannot_unlink(client, identity_provider):
    identity_provider.add(
        "google-new",
        Identity(uid="g-new", email="gnew@example.com", sign_in_provider="google.com"),
    )
    r = client.post("/auth/login", json={"idToken": "google-new"})
    assert r.status_code == 200, r.text

    login_as(client, "google-new")
    r = client.delete("/auth/link-google")
    assert r.status_code == 400
