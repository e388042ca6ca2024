import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.core.config import DEFAULT_CLASSROOM_CATEGORY
from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.storage import AttachmentStorage, get_storage
from app.models.classroom_task import ClassroomTask
from app.models.user import User
from app.schemas.classroom_task import (
    ClassroomTaskDeleted,
    ClassroomTaskDetails,
    ClassroomTaskList,
    ClassroomTaskRead,
    ClassroomTaskSaved,
)
from app.schemas.common import to_utc
from app.services.attachments import delete_files, upload_classroom_files
from app.services.classrooms import (
    ensure_can_view_classroom,
    ensure_classroom_exists,
    ensure_classroom_teacher,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_task_exists(db: Session, classroom_id: str, task_id: str) -> ClassroomTask:
    task = (
        db.query(ClassroomTask)
        .filter(ClassroomTask.id == task_id, ClassroomTask.classroom_id == classroom_id)
        .first()
    )
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _parse_files_to_remove(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        urls = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="filesToRemove must be a JSON array of URLs")
    if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
        raise HTTPException(status_code=400, detail="filesToRemove must be a JSON array of URLs")
    return urls


@router.get("/{classroom_id}/tasks", response_model=ClassroomTaskList)
def list_classroom_tasks(
    classroom_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_can_view_classroom(db, classroom, me)

    tasks = (
        db.query(ClassroomTask)
        .filter(ClassroomTask.classroom_id == classroom_id)
        .order_by(ClassroomTask.dead_line.asc(), ClassroomTask.id.asc())
        .all()
    )
    return ClassroomTaskList(
        count=len(tasks),
        tasks=[ClassroomTaskRead.model_validate(t) for t in tasks],
    )


@router.post(
    "/{classroom_id}/tasks",
    response_model=ClassroomTaskSaved,
    status_code=status.HTTP_201_CREATED,
)
def add_classroom_task(
    classroom_id: str,
    task_name: str = Form(..., alias="taskName", min_length=1, max_length=255),
    dead_line: datetime = Form(..., alias="deadLine"),
    description: str = Form(default=""),
    category: str = Form(default=""),
    files: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_classroom_teacher(classroom, me, "add tasks to")

    file_urls = upload_classroom_files(storage, classroom_id, files or [])

    task = ClassroomTask(
        classroom_id=classroom_id,
        task_name=task_name.strip(),
        description=description,
        dead_line=to_utc(dead_line),
        category=category or DEFAULT_CLASSROOM_CATEGORY,
        files=file_urls,
        created_by=me.uid,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Classroom %s: task %s added with %d files", classroom_id, task.id, len(file_urls))

    # students pick it up on their next sync
    return ClassroomTaskSaved(
        message="Task added successfully. Students will receive it on next sync.",
        task_id=task.id,
        files_uploaded=len(file_urls),
        total_files=len(file_urls),
    )


@router.get("/{classroom_id}/tasks/{task_id}", response_model=ClassroomTaskDetails)
def classroom_task_details(
    classroom_id: str,
    task_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_can_view_classroom(db, classroom, me)
    task = _ensure_task_exists(db, classroom_id, task_id)
    return ClassroomTaskDetails(task=ClassroomTaskRead.model_validate(task))


@router.put("/{classroom_id}/tasks/{task_id}", response_model=ClassroomTaskSaved)
def update_classroom_task(
    classroom_id: str,
    task_id: str,
    task_name: str = Form(..., alias="taskName", min_length=1, max_length=255),
    dead_line: datetime = Form(..., alias="deadLine"),
    description: str = Form(default=""),
    category: str = Form(default=""),
    files_to_remove: str | None = Form(default=None, alias="filesToRemove"),
    files: list[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_classroom_teacher(classroom, me, "update tasks of")
    task = _ensure_task_exists(db, classroom_id, task_id)

    to_remove = _parse_files_to_remove(files_to_remove)
    existing = list(task.files or [])
    # only files of this task, anything else in the list is ignored
    removed = [url for url in existing if url in to_remove]
    if removed:
        delete_files(storage, removed)
        existing = [url for url in existing if url not in removed]

    new_urls = upload_classroom_files(storage, classroom_id, files or [])

    task.task_name = task_name.strip()
    task.description = description
    task.dead_line = to_utc(dead_line)
    task.category = category or DEFAULT_CLASSROOM_CATEGORY
    task.files = existing + new_urls
    task.updated_at = datetime.now(timezone.utc)
    db.commit()

    return ClassroomTaskSaved(
        message="Task updated successfully",
        task_id=task_id,
        files_uploaded=len(new_urls),
        files_removed=len(removed),
        total_files=len(existing) + len(new_urls),
    )


@router.delete("/{classroom_id}/tasks/{task_id}", response_model=ClassroomTaskDeleted)
def delete_classroom_task(
    classroom_id: str,
    task_id: str,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
    storage: AttachmentStorage = Depends(get_storage),
):
    classroom = ensure_classroom_exists(db, classroom_id)
    ensure_classroom_teacher(classroom, me, "delete tasks of")
    task = _ensure_task_exists(db, classroom_id, task_id)

    files = list(task.files or [])
    db.delete(task)
    db.commit()
    logger.info("Classroom %s: task %s deleted", classroom_id, task_id)

    # student copies disappear on their next sync
    delete_files(storage, files)
    return ClassroomTaskDeleted(
        message="Task and associated files deleted successfully",
        files_deleted=len(files),
    )
