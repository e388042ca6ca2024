import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from app.models.user import User
from app.services.sync import sync_student_tasks

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Periodically reconciles every student's classroom task copies."""

    def __init__(self, session_factory: sessionmaker, interval_seconds: int):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    def run_once(self) -> int:
        """Sync all students, returns how many were synced without error."""
        db = self.session_factory()
        synced = 0
        try:
            student_uids = [
                row.uid for row in db.query(User.uid).filter(User.role == "student").all()
            ]
            for uid in student_uids:
                student = db.get(User, uid)
                if student is None:
                    continue
                try:
                    sync_student_tasks(db, student)
                except SQLAlchemyError:
                    db.rollback()
                    logger.exception("Background sync failed for %s", uid)
                    continue
                synced += 1
        finally:
            db.close()
        return synced

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                synced = await run_in_threadpool(self.run_once)
            except SQLAlchemyError:
                logger.exception("Background sync pass failed")
                continue
            logger.debug("Background sync pass done (%d students)", synced)

    def start(self) -> None:
        if self.interval_seconds <= 0 or self._task is not None:
            return
        logger.info("Starting background classroom sync every %ss", self.interval_seconds)
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
