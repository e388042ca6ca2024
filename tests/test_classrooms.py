import re

from app.models.classroom import Classroom
from app.models.classroom_member import ClassroomMember
from app.models.classroom_task import ClassroomTask
from app.models.task import Task
from app.models.user import User
from tests.conftest import login_as


def _members(db, classroom_id="C1"):
    return [
        m.student_uid
        for m in db.query(ClassroomMember).filter(ClassroomMember.classroom_id == classroom_id)
    ]


def test_teacher_creates_classroom_with_code(client, db):
    login_as(client, "token-teacher-1")
    r = client.post("/classrooms", json={"name": "Chemistry"})
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["name"] == "Chemistry"
    assert re.fullmatch(r"[A-Z0-9]{6}", body["code"])

    classroom = db.get(Classroom, body["classroomID"])
    assert classroom.teacher_uid == "teacher-1"
    assert classroom.code == body["code"]


def test_student_cannot_create_classroom(client):
    login_as(client, "token-student-1")
    r = client.post("/classrooms", json={"name": "Nope"})
    assert r.status_code == 403
    assert r.json()["error"] == "Teacher role required"


def test_join_copies_tasks_and_is_idempotent(client, db):
    login_as(client, "token-student-2")

    r1 = client.post("/classrooms/join", json={"code": "ABC123"})
    assert r1.status_code == 200, r1.text
    body1 = r1.json()
    assert body1["classroomID"] == "C1"
    assert body1["alreadyJoined"] is False
    assert body1["tasksCount"] == 1

    r2 = client.post("/classrooms/join", json={"code": "ABC123"})
    assert r2.status_code == 200, r2.text
    body2 = r2.json()
    assert body2["alreadyJoined"] is True
    assert body2["message"] == "You are already in this classroom"

    assert _members(db).count("student-2") == 1
    copies = db.query(Task).filter(Task.owner_uid == "student-2").all()
    assert len(copies) == 1
    assert copies[0].classroom_task_id == "t1"
    assert copies[0].priority_level == 3


def test_join_code_is_case_insensitive(client):
    login_as(client, "token-student-2")
    r = client.post("/classrooms/join", json={"code": "abc123"})
    assert r.status_code == 200, r.text
    assert r.json()["classroomID"] == "C1"


def test_join_unknown_code_is_404(client):
    login_as(client, "token-student-2")
    r = client.post("/classrooms/join", json={"code": "ZZZZZZ"})
    assert r.status_code == 404
    assert r.json()["error"] == "Classroom not found"


def test_teacher_cannot_join(client):
    login_as(client, "token-teacher-1")
    r = client.post("/classrooms/join", json={"code": "ABC123"})
    assert r.status_code == 403


def test_leave_removes_membership_and_copies(client, db):
    login_as(client, "token-student-1")
    r = client.post("/classrooms/C1/leave")
    assert r.status_code == 200, r.text
    assert r.json()["tasksDeleted"] == 1

    assert "student-1" not in _members(db)
    assert db.query(Task).filter(Task.owner_uid == "student-1", Task.classroom_id == "C1").count() == 0


def test_leave_keeps_personal_tasks(client, db):
    db.add(Task(owner_uid="student-1", task_name="Groceries", priority_level=1))
    db.commit()

    login_as(client, "token-student-1")
    r = client.post("/classrooms/C1/leave")
    assert r.status_code == 200, r.text

    remaining = db.query(Task).filter(Task.owner_uid == "student-1").all()
    assert [t.task_name for t in remaining] == ["Groceries"]


def test_leave_when_not_member_is_404(client):
    login_as(client, "token-student-2")
    r = client.post("/classrooms/C1/leave")
    assert r.status_code == 404


def test_teacher_deletes_classroom_with_everything_copied_out(client, db):
    login_as(client, "token-teacher-1")
    r = client.delete("/classrooms/C1")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["message"] == "Classroom deleted"
    assert body["stats"] == {"studentsAffected": 1, "tasksDeleted": 2}

    assert db.get(Classroom, "C1") is None
    assert db.query(ClassroomTask).count() == 0
    assert _members(db) == []
    assert db.query(Task).filter(Task.classroom_id == "C1").count() == 0


def test_delete_removes_classroom_files(client, db, storage, tmp_path):
    url = storage.upload("classrooms/C1/tasks/1-sheet.pdf", b"%PDF", "application/pdf")
    task = db.get(ClassroomTask, "t1")
    task.files = [url]
    db.commit()

    login_as(client, "token-teacher-1")
    r = client.delete("/classrooms/C1")
    assert r.status_code == 200, r.text
    assert not (tmp_path / "classrooms/C1/tasks/1-sheet.pdf").exists()


def test_other_teacher_cannot_delete_classroom(client, identity_provider, db):
    from app.core.firebase import Identity

    db.add(User(uid="teacher-2", email="teacher2@example.com", role="teacher"))
    db.commit()
    identity_provider.add(
        "token-teacher-2",
        Identity(uid="teacher-2", email="teacher2@example.com", sign_in_provider="password"),
    )

    login_as(client, "token-teacher-2")
    r = client.delete("/classrooms/C1")
    assert r.status_code == 403
    assert r.json()["error"] == "Only the teacher can delete this classroom"
    assert db.get(Classroom, "C1") is not None


def test_unauthenticated_requests_mutate_nothing(client, db):
    assert client.post("/classrooms/join", json={"code": "ABC123"}).status_code == 401
    assert client.post("/classrooms/C1/leave").status_code == 401
    assert client.delete("/classrooms/C1").status_code == 401
    assert client.post("/classrooms", json={"name": "X"}).status_code == 401
    assert client.post("/classrooms/sync-tasks").status_code == 401

    assert db.query(Classroom).count() == 1
    assert _members(db) == ["student-1"]
    assert db.query(Task).count() == 1


def test_my_classrooms_for_teacher_and_student(client):
    login_as(client, "token-teacher-1")
    r = client.get("/classrooms")
    assert r.status_code == 200, r.text
    assert r.json()["classrooms"] == [
        {"classroomID": "C1", "name": "Physics 101", "taskCount": 1, "isTeacher": True}
    ]

    login_as(client, "token-student-1")
    r = client.get("/classrooms")
    assert r.status_code == 200, r.text
    assert r.json()["classrooms"] == [
        {"classroomID": "C1", "name": "Physics 101", "taskCount": 1, "isTeacher": False}
    ]

    login_as(client, "token-student-2")
    r = client.get("/classrooms")
    assert r.json()["count"] == 0


def test_classroom_info_for_member(client):
    login_as(client, "token-student-1")
    r = client.get("/classrooms/C1")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["classroom"] == {
        "id": "C1",
        "name": "Physics 101",
        "code": "ABC123",
        "teacher": "teacher-1",
    }
    assert body["teacherName"] == "Teacher One"
    assert body["tasks"] == ["HW1"]
    assert body["students"] == ["Student One"]
    assert body["userRole"] == "student"


def test_classroom_info_forbidden_for_outsider(client):
    login_as(client, "token-student-2")
    r = client.get("/classrooms/C1")
    assert r.status_code == 403
    assert r.json()["error"] == "You don't have access to this classroom"


def test_classroom_info_unknown_is_404(client):
    login_as(client, "token-teacher-1")
    assert client.get("/classrooms/nope").status_code == 404
