"""Reconcile a student's personal task copies with their classrooms.

For every classroom the student belongs to, the classroom's task list is the
source of truth. Planning is pure (``plan_classroom_sync``); applying a plan
writes one classroom per transaction so an interrupted run can simply be
re-run.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import CLASSROOM_TASK_PRIORITY, DEFAULT_CLASSROOM_CATEGORY
from app.models.classroom import Classroom
from app.models.classroom_member import ClassroomMember
from app.models.classroom_task import ClassroomTask
from app.models.task import Task
from app.models.user import User
from app.schemas.sync import SyncResult, SyncStats

logger = logging.getLogger(__name__)

SYNCED_FIELDS = ("task_name", "description", "dead_line", "category", "attachments")


@dataclass
class ClassroomSyncPlan:
    to_add: list[ClassroomTask] = field(default_factory=list)
    to_update: list[tuple[Task, dict]] = field(default_factory=list)
    to_delete: list[Task] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_add or self.to_update or self.to_delete)


def _as_utc(value):
    # SQLite hands back naive datetimes; treat them as UTC
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def copy_values(classroom_task: ClassroomTask) -> dict:
    """The synced fields a student's copy should carry."""
    return {
        "task_name": classroom_task.task_name,
        "description": classroom_task.description or "",
        "dead_line": classroom_task.dead_line,
        "category": classroom_task.category or DEFAULT_CLASSROOM_CATEGORY,
        "attachments": list(classroom_task.files or []),
    }


def changed_fields(classroom_task: ClassroomTask, copy: Task) -> dict:
    desired = copy_values(classroom_task)
    current = {
        "task_name": copy.task_name,
        "description": copy.description or "",
        "dead_line": copy.dead_line,
        "category": copy.category or DEFAULT_CLASSROOM_CATEGORY,
        "attachments": list(copy.attachments or []),
    }
    return {
        name: desired[name]
        for name in SYNCED_FIELDS
        if _as_utc(desired[name]) != _as_utc(current[name])
    }


def plan_classroom_sync(
    classroom_tasks: list[ClassroomTask], copies: list[Task]
) -> ClassroomSyncPlan:
    plan = ClassroomSyncPlan()
    live = {ct.id: ct for ct in classroom_tasks}

    by_source: dict[str, Task] = {}
    for copy in copies:
        source_id = copy.classroom_task_id
        if not source_id:
            logger.debug("Task %s is tagged with a classroom but has no classroomTaskId", copy.id)
            continue
        if source_id in by_source:
            logger.debug("Task %s duplicates the copy of %s", copy.id, source_id)
            plan.to_delete.append(copy)
            continue
        by_source[source_id] = copy

    for source_id, copy in by_source.items():
        if source_id not in live:
            logger.debug("Task %s lost its classroom task %s", copy.id, source_id)
            plan.to_delete.append(copy)

    for source_id, classroom_task in live.items():
        copy = by_source.get(source_id)
        if copy is None:
            plan.to_add.append(classroom_task)
            continue
        changes = changed_fields(classroom_task, copy)
        if changes:
            plan.to_update.append((copy, changes))

    return plan


def new_copy(owner_uid: str, classroom_task: ClassroomTask) -> Task:
    return Task(
        owner_uid=owner_uid,
        priority_level=CLASSROOM_TASK_PRIORITY,
        is_finished=False,
        classroom_id=classroom_task.classroom_id,
        classroom_task_id=classroom_task.id,
        created_at=classroom_task.created_at or datetime.now(timezone.utc),
        **copy_values(classroom_task),
    )


def _student_copies(db: Session, student_uid: str, classroom_id: str) -> list[Task]:
    return (
        db.query(Task)
        .filter(Task.owner_uid == student_uid, Task.classroom_id == classroom_id)
        .all()
    )


def apply_classroom_sync(db: Session, student_uid: str, classroom_id: str, stats: SyncStats) -> None:
    """Plan and apply one classroom, committing once. Retries a lost add race once."""
    for attempt in (1, 2):
        classroom_tasks = (
            db.query(ClassroomTask).filter(ClassroomTask.classroom_id == classroom_id).all()
        )
        plan = plan_classroom_sync(classroom_tasks, _student_copies(db, student_uid, classroom_id))
        if plan.is_empty:
            return

        for copy in plan.to_delete:
            db.delete(copy)
        for classroom_task in plan.to_add:
            db.add(new_copy(student_uid, classroom_task))
        now = datetime.now(timezone.utc)
        for copy, changes in plan.to_update:
            for name, value in changes.items():
                setattr(copy, name, value)
            copy.updated_at = now

        try:
            db.commit()
        except IntegrityError:
            # another sync for this student added the same copy first
            db.rollback()
            if attempt == 2:
                raise
            logger.info("Sync race on classroom %s for %s, re-planning", classroom_id, student_uid)
            continue

        stats.tasks_deleted += len(plan.to_delete)
        stats.tasks_added += len(plan.to_add)
        stats.notifications += len(plan.to_add)
        stats.tasks_updated += len(plan.to_update)
        logger.info(
            "Classroom %s for %s: +%d ~%d -%d",
            classroom_id,
            student_uid,
            len(plan.to_add),
            len(plan.to_update),
            len(plan.to_delete),
        )
        return


def drop_stale_classrooms(db: Session, student_uid: str, stats: SyncStats) -> list[str]:
    """Forget classrooms that no longer exist. Returns the ids still valid."""
    memberships = (
        db.query(ClassroomMember).filter(ClassroomMember.student_uid == student_uid).all()
    )
    existing: set[str] = set()
    if memberships:
        classroom_ids = [m.classroom_id for m in memberships]
        rows = db.query(Classroom.id).filter(Classroom.id.in_(classroom_ids)).all()
        existing = {row.id for row in rows}

    valid: list[str] = []
    for membership in memberships:
        if membership.classroom_id in existing:
            valid.append(membership.classroom_id)
            continue
        deleted = (
            db.query(Task)
            .filter(Task.owner_uid == student_uid, Task.classroom_id == membership.classroom_id)
            .delete(synchronize_session=False)
        )
        db.delete(membership)
        stats.tasks_deleted += deleted
        stats.classrooms_deleted += 1
        logger.info(
            "Classroom %s no longer exists, removed %d tasks from %s",
            membership.classroom_id,
            deleted,
            student_uid,
        )

    if stats.classrooms_deleted:
        db.commit()
    return valid


def sync_student_tasks(db: Session, user: User) -> SyncResult:
    stats = SyncStats()
    if user.role != "student":
        return SyncResult(message="Not a student, no sync needed", stats=stats)

    valid_classrooms = drop_stale_classrooms(db, user.uid, stats)
    for classroom_id in valid_classrooms:
        apply_classroom_sync(db, user.uid, classroom_id, stats)

    return SyncResult(message="Classroom tasks synced successfully", stats=stats)
