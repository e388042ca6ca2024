from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.storage import AttachmentStorage, get_storage
from app.models.classroom import Classroom
from app.models.task import Task
from app.models.user import User
from app.schemas.task import (
    AttachmentDelete,
    AttachmentDeletion,
    AttachmentDeleteResult,
    TaskCreate,
    TaskDetails,
    TaskDetailsResponse,
    TaskList,
    TaskRead,
    TaskResponse,
    TaskUpdate,
)
from app.services.attachments import delete_files, stored_under, task_files_prefix

router = APIRouter()


def _ensure_own_task(db: Session, task_id: str, user: User) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.owner_uid == user.uid).first()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _ensure_personal(task: Task, action: str) -> None:
    # copies are owned by the classroom; sync would bring them back
    if task.classroom_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Classroom tasks can't {action}, ask your teacher",
        )


@router.get("", response_model=TaskList)
def list_tasks(
    category: str | None = None,
    is_finished: bool | None = Query(default=None, alias="isFinished"),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    q = db.query(Task).filter(Task.owner_uid == me.uid)
    if category is not None:
        q = q.filter(Task.category == category)
    if is_finished is not None:
        q = q.filter(Task.is_finished == is_finished)

    tasks = q.order_by(Task.dead_line.asc(), Task.created_at.asc()).all()
    return TaskList(count=len(tasks), tasks=[TaskRead.model_validate(t) for t in tasks])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    task = Task(
        owner_uid=me.uid,
        task_name=payload.task_name.strip(),
        description=payload.description,
        category=payload.category,
        priority_level=payload.priority_level,
        dead_line=payload.dead_line,
        is_finished=payload.is_finished,
        attachments=[],
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return TaskResponse(message="Task added successfully", task=TaskRead.model_validate(task))


@router.get("/{task_id}", response_model=TaskDetailsResponse)
def task_details(
    task_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    task = _ensure_own_task(db, task_id, me)
    details = TaskDetails.model_validate(task)

    if task.classroom_id:
        classroom = db.get(Classroom, task.classroom_id)
        teacher = classroom.teacher if classroom else None
        if teacher is not None:
            details.created_by = teacher.uid
            details.created_by_name = teacher.display_name or teacher.email or "Unknown"
    else:
        details.created_by = me.uid
        details.created_by_name = me.display_name or me.email or "Unknown"

    return TaskDetailsResponse(task=details)


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No update data provided")

    task = _ensure_own_task(db, task_id, me)
    for name in ("task_name", "priority_level", "is_finished"):
        if name in changes and changes[name] is None:
            raise HTTPException(status_code=400, detail=f"{name} can't be null")

    for name, value in changes.items():
        if name == "attachments":
            value = list(value or [])
        elif name == "description":
            value = value or ""
        setattr(task, name, value)
    task.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(task)
    return TaskResponse(message="Task updated successfully", task=TaskRead.model_validate(task))


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    task = _ensure_own_task(db, task_id, me)
    _ensure_personal(task, "be deleted")
    db.delete(task)
    db.commit()
    return {"success": True, "message": "Task deleted successfully"}


@router.delete("/{task_id}/attachments", response_model=AttachmentDeleteResult)
def delete_attachments(
    task_id: str,
    payload: AttachmentDelete,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    task = _ensure_own_task(db, task_id, me)
    _ensure_personal(task, "have attachments removed")

    attached = list(task.attachments or [])
    prefix = task_files_prefix(me.uid)
    results: list[AttachmentDeletion] = []
    removed: list[str] = []
    for url in dict.fromkeys(payload.file_urls):
        if url not in attached:
            results.append(
                AttachmentDeletion(url=url, success=False, error="Not attached to this task")
            )
            continue
        removed.append(url)
        if stored_under(storage, url, prefix):
            results.extend(delete_files(storage, [url]))
        else:
            # someone else's object or an external link, drop the reference only
            results.append(
                AttachmentDeletion(
                    url=url, success=False, error="Not one of your files, reference removed only"
                )
            )

    remaining = [url for url in attached if url not in removed]
    task.attachments = remaining
    task.updated_at = datetime.now(timezone.utc)
    db.commit()

    return AttachmentDeleteResult(
        message=f"Removed {len(removed)} attachment(s)",
        deletion_results=results,
        remaining_attachments=remaining,
    )
