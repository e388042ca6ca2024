from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from app.db.base_class import Base, generate_id


class ClassroomTask(Base):
    __tablename__ = "classroom_tasks"

    id = Column(String(64), primary_key=True, default=generate_id)
    classroom_id = Column(
        String(64), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False, index=True
    )

    task_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    dead_line = Column(DateTime(timezone=True), nullable=False)
    category = Column(String(255), nullable=False, default="Homework")
    files = Column(JSON, nullable=False, default=list)  # storage URLs

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_by = Column(String(128), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    classroom = relationship("Classroom", back_populates="tasks")
