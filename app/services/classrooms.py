import logging
import secrets

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import CLASSROOM_CODE_ALPHABET, CLASSROOM_CODE_LENGTH
from app.core.storage import AttachmentStorage
from app.models.classroom import Classroom
from app.models.classroom_member import ClassroomMember
from app.models.task import Task
from app.models.user import User
from app.schemas.sync import SyncStats
from app.services.attachments import delete_files
from app.services.sync import apply_classroom_sync

logger = logging.getLogger(__name__)


def generate_code() -> str:
    return "".join(secrets.choice(CLASSROOM_CODE_ALPHABET) for _ in range(CLASSROOM_CODE_LENGTH))


def generate_unique_code(db: Session) -> str:
    code = generate_code()
    while db.query(Classroom.id).filter(Classroom.code == code).first() is not None:
        code = generate_code()
    return code


def ensure_classroom_exists(db: Session, classroom_id: str) -> Classroom:
    classroom = db.get(Classroom, classroom_id)
    if not classroom:
        raise HTTPException(status_code=404, detail="Classroom not found")
    return classroom


def is_member(db: Session, classroom_id: str, student_uid: str) -> bool:
    return (
        db.query(ClassroomMember)
        .filter(
            ClassroomMember.classroom_id == classroom_id,
            ClassroomMember.student_uid == student_uid,
        )
        .first()
        is not None
    )


def ensure_classroom_teacher(classroom: Classroom, user: User, action: str = "manage") -> None:
    if classroom.teacher_uid != user.uid:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the teacher can {action} this classroom",
        )


def ensure_can_view_classroom(db: Session, classroom: Classroom, user: User) -> None:
    if classroom.teacher_uid == user.uid:
        return
    if not is_member(db, classroom.id, user.uid):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have access to this classroom",
        )


def member_uids(db: Session, classroom_id: str) -> list[str]:
    rows = (
        db.query(ClassroomMember.student_uid)
        .filter(ClassroomMember.classroom_id == classroom_id)
        .order_by(ClassroomMember.joined_at.asc(), ClassroomMember.id.asc())
        .all()
    )
    return [row.student_uid for row in rows]


def create_classroom(db: Session, teacher: User, name: str) -> Classroom:
    classroom = Classroom(name=name, code=generate_unique_code(db), teacher_uid=teacher.uid)
    db.add(classroom)
    db.commit()
    db.refresh(classroom)
    logger.info("Teacher %s created classroom %s (%s)", teacher.uid, classroom.id, classroom.code)
    return classroom


def join_classroom(db: Session, student: User, code: str) -> tuple[Classroom, bool, SyncStats]:
    """Add the student and copy the classroom's tasks.

    Returns (classroom, already_joined, stats). Joining twice changes nothing.
    """
    classroom = db.query(Classroom).filter(Classroom.code == code.strip().upper()).first()
    if not classroom:
        raise HTTPException(status_code=404, detail="Classroom not found")

    stats = SyncStats()
    if is_member(db, classroom.id, student.uid):
        return classroom, True, stats

    db.add(ClassroomMember(classroom_id=classroom.id, student_uid=student.uid))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return classroom, True, stats

    apply_classroom_sync(db, student.uid, classroom.id, stats)
    logger.info(
        "Student %s joined classroom %s, copied %d tasks",
        student.uid,
        classroom.id,
        stats.tasks_added,
    )
    return classroom, False, stats


def leave_classroom(db: Session, student: User, classroom_id: str) -> int:
    membership = (
        db.query(ClassroomMember)
        .filter(
            ClassroomMember.classroom_id == classroom_id,
            ClassroomMember.student_uid == student.uid,
        )
        .first()
    )
    if not membership:
        raise HTTPException(status_code=404, detail="Not a member of this classroom")

    deleted = (
        db.query(Task)
        .filter(Task.owner_uid == student.uid, Task.classroom_id == classroom_id)
        .delete(synchronize_session=False)
    )
    db.delete(membership)
    db.commit()
    logger.info("Student %s left classroom %s, removed %d tasks", student.uid, classroom_id, deleted)
    return deleted


def delete_classroom(db: Session, classroom: Classroom, storage: AttachmentStorage) -> tuple[int, int]:
    """Remove the classroom with everything copied out of it.

    Returns (students_affected, tasks_deleted). Database rows go in one
    transaction; attachment files are removed afterwards, best-effort.
    """
    classroom_id = classroom.id
    students = member_uids(db, classroom_id)
    files = [url for task in classroom.tasks for url in (task.files or [])]
    classroom_tasks_deleted = len(classroom.tasks)

    copies_deleted = (
        db.query(Task)
        .filter(Task.classroom_id == classroom_id)
        .delete(synchronize_session=False)
    )
    db.query(ClassroomMember).filter(ClassroomMember.classroom_id == classroom_id).delete(
        synchronize_session=False
    )
    # classroom tasks go with the classroom (ORM cascade)
    db.delete(classroom)
    db.commit()

    delete_files(storage, files)
    logger.info(
        "Deleted classroom %s: %d students affected, %d tasks deleted",
        classroom_id,
        len(students),
        copies_deleted + classroom_tasks_deleted,
    )
    return len(students), copies_deleted + classroom_tasks_deleted
