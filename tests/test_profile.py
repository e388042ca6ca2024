from app.models.user import User
from tests.conftest import login_as


def test_get_profile_lists_classrooms(client):
    login_as(client, "token-student-1")
    r = client.get("/profile")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["uid"] == "student-1"
    assert body["displayName"] == "Student One"
    assert body["role"] == "student"
    assert body["classrooms"] == ["C1"]
    assert body["googleLinked"] is False


def test_patch_profile(client, db):
    login_as(client, "token-student-2")
    r = client.patch("/profile", json={"fullName": "Student Number Two", "photoURL": "/media/a.png"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["fullName"] == "Student Number Two"
    assert body["photoURL"] == "/media/a.png"
    assert body["displayName"] == "Student Two"

    user = db.get(User, "student-2")
    assert user.full_name == "Student Number Two"


def test_delete_stored_avatar(client, db, storage, tmp_path):
    url = storage.upload("avatars/student-2/photo.png", b"png")
    user = db.get(User, "student-2")
    user.photo_url = url
    db.commit()

    login_as(client, "token-student-2")
    r = client.delete("/profile/avatar")
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Avatar deleted successfully"
    assert not (tmp_path / "avatars/student-2/photo.png").exists()

    db.expire_all()
    assert db.get(User, "student-2").photo_url is None


def test_delete_external_avatar_only_clears_reference(client, db):
    user = db.get(User, "student-2")
    user.photo_url = "https://lh3.googleusercontent.com/a/pic"
    db.commit()

    login_as(client, "token-student-2")
    r = client.delete("/profile/avatar")
    assert r.status_code == 200, r.text
    assert r.json()["message"] == "Avatar is not stored here, cleared the reference only"

    db.expire_all()
    assert db.get(User, "student-2").photo_url is None


def test_delete_avatar_when_none(client):
    login_as(client, "token-student-2")
    r = client.delete("/profile/avatar")
    assert r.json()["message"] == "No avatar to delete"


def test_avatar_pointing_at_someone_elses_file_is_not_deleted(client, db, storage, tmp_path):
    sheet = storage.upload("classrooms/C1/tasks/1-sheet.pdf", b"%PDF")
    other = storage.upload("avatars/student-1/photo.png", b"png")

    login_as(client, "token-student-2")
    for url in (sheet, other):
        r = client.patch("/profile", json={"photoURL": url})
        assert r.status_code == 200, r.text

        r = client.delete("/profile/avatar")
        assert r.status_code == 200, r.text
        assert r.json()["message"] == "Avatar is not stored here, cleared the reference only"

    assert (tmp_path / "classrooms/C1/tasks/1-sheet.pdf").exists()
    assert (tmp_path / "avatars/student-1/photo.png").exists()
    db.expire_all()
    assert db.get(User, "student-2").photo_url is None


def test_avatar_path_escaping_own_folder_is_not_deleted(client, storage, tmp_path):
    storage.upload("classrooms/C1/tasks/1-sheet.pdf", b"%PDF")

    login_as(client, "token-student-2")
    client.patch(
        "/profile",
        json={"photoURL": "/media/avatars/student-2/../../classrooms/C1/tasks/1-sheet.pdf"},
    )
    r = client.delete("/profile/avatar")
    assert r.status_code == 200, r.text
    assert (tmp_path / "classrooms/C1/tasks/1-sheet.pdf").exists()
