from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base, generate_id


class Task(Base):
    """A user's personal task, possibly a synced copy of a classroom task."""

    __tablename__ = "tasks"

    id = Column(String(64), primary_key=True, default=generate_id)
    owner_uid = Column(
        String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True
    )

    task_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(255), nullable=True)
    priority_level = Column(Integer, nullable=False, default=1)
    dead_line = Column(DateTime(timezone=True), nullable=True)
    is_finished = Column(Boolean, nullable=False, default=False)
    attachments = Column(JSON, nullable=False, default=list)

    # set only on copies of classroom tasks
    classroom_id = Column(String(64), nullable=True, index=True)
    classroom_task_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("priority_level BETWEEN 0 AND 3", name="ck_tasks_priority_level"),
        # one copy per classroom task per student, NULLs (personal tasks) don't collide
        UniqueConstraint("owner_uid", "classroom_task_id", name="uq_tasks_owner_classroom_task"),
    )

    owner = relationship("User", back_populates="tasks")
