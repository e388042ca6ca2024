from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.permissions import require_student, require_teacher
from app.core.storage import AttachmentStorage, get_storage
from app.models.classroom import Classroom
from app.models.classroom_member import ClassroomMember
from app.models.classroom_task import ClassroomTask
from app.models.task import Task
from app.models.user import User
from app.schemas.classroom import (
    ClassroomBasic,
    ClassroomCreate,
    ClassroomCreated,
    ClassroomDeleted,
    ClassroomDeleteStats,
    ClassroomInfo,
    ClassroomJoin,
    ClassroomJoined,
    ClassroomLeft,
    ClassroomList,
    ClassroomSummary,
)
from app.schemas.sync import SyncResult
from app.services.classrooms import (
    create_classroom,
    delete_classroom,
    ensure_can_view_classroom,
    ensure_classroom_exists,
    ensure_classroom_teacher,
    join_classroom,
    leave_classroom,
    member_uids,
)
from app.services.sync import sync_student_tasks

router = APIRouter()


def _user_label(user: User | None, fallback: str) -> str:
    if user is None:
        return fallback
    return user.display_name or user.email or fallback


@router.get("", response_model=ClassroomList)
def my_classrooms(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    rows: list[ClassroomSummary] = []

    owned = (
        db.query(Classroom, func.count(ClassroomTask.id))
        .outerjoin(ClassroomTask, ClassroomTask.classroom_id == Classroom.id)
        .filter(Classroom.teacher_uid == me.uid)
        .group_by(Classroom.id)
        .order_by(Classroom.created_at.asc())
        .all()
    )
    for classroom, task_count in owned:
        rows.append(
            ClassroomSummary(
                classroom_id=classroom.id,
                name=classroom.name,
                task_count=task_count,
                is_teacher=True,
            )
        )

    joined = (
        db.query(Classroom)
        .join(ClassroomMember, ClassroomMember.classroom_id == Classroom.id)
        .filter(ClassroomMember.student_uid == me.uid)
        .order_by(ClassroomMember.joined_at.asc())
        .all()
    )
    for classroom in joined:
        task_count = (
            db.query(func.count(Task.id))
            .filter(Task.owner_uid == me.uid, Task.classroom_id == classroom.id)
            .scalar()
        ) or 0
        rows.append(
            ClassroomSummary(
                classroom_id=classroom.id,
                name=classroom.name,
                task_count=task_count,
                is_teacher=False,
            )
        )

    return ClassroomList(count=len(rows), classrooms=rows)


@router.post("", response_model=ClassroomCreated, status_code=status.HTTP_201_CREATED)
def create(
    payload: ClassroomCreate,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
):
    classroom = create_classroom(db, teacher, payload.name.strip())
    return ClassroomCreated(classroom_id=classroom.id, code=classroom.code, name=classroom.name)


@router.post("/join", response_model=ClassroomJoined)
def join(
    payload: ClassroomJoin,
    db: Session = Depends(get_db),
    student: User = Depends(require_student),
):
    classroom, already_joined, stats = join_classroom(db, student, payload.code)
    return ClassroomJoined(
        classroom_id=classroom.id,
        name=classroom.name,
        code=classroom.code,
        tasks_count=stats.tasks_added,
        already_joined=already_joined,
        message="You are already in this classroom" if already_joined else None,
    )


@router.post("/sync-tasks", response_model=SyncResult)
def sync_tasks(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return sync_student_tasks(db, me)


@router.get("/{classroom_id}", response_model=ClassroomInfo)
def classroom_info(
    classroom_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_can_view_classroom(db, classroom, me)

    task_names = [
        row.task_name
        for row in db.query(ClassroomTask.task_name)
        .filter(ClassroomTask.classroom_id == classroom.id)
        .order_by(ClassroomTask.created_at.asc())
        .all()
    ]

    student_uids = member_uids(db, classroom.id)
    users = {u.uid: u for u in db.query(User).filter(User.uid.in_(student_uids)).all()}
    students = [_user_label(users.get(uid), uid) for uid in student_uids]

    return ClassroomInfo(
        classroom=ClassroomBasic(
            id=classroom.id,
            name=classroom.name,
            code=classroom.code,
            teacher=classroom.teacher_uid,
        ),
        teacher_name=_user_label(classroom.teacher, "Unknown Teacher"),
        tasks=task_names,
        students=students,
        user_role=me.role,
    )


@router.post("/{classroom_id}/leave", response_model=ClassroomLeft)
def leave(
    classroom_id: str,
    db: Session = Depends(get_db),
    student: User = Depends(require_student),
):
    deleted = leave_classroom(db, student, classroom_id)
    return ClassroomLeft(tasks_deleted=deleted)


@router.delete("/{classroom_id}", response_model=ClassroomDeleted)
def delete(
    classroom_id: str,
    db: Session = Depends(get_db),
    teacher: User = Depends(require_teacher),
    storage: AttachmentStorage = Depends(get_storage),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_classroom_teacher(classroom, teacher, "delete")

    students_affected, tasks_deleted = delete_classroom(db, classroom, storage)
    return ClassroomDeleted(
        message="Classroom deleted",
        stats=ClassroomDeleteStats(
            students_affected=students_affected,
            tasks_deleted=tasks_deleted,
        ),
    )
