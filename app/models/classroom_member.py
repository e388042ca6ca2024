from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.db.base_class import Base


class ClassroomMember(Base):
    """A student's membership in a classroom.

    classroom_id has no foreign key: a membership that outlives
    its classroom is how the sync routine notices a deleted classroom.
    """

    __tablename__ = "classroom_members"

    id = Column(Integer, primary_key=True, index=True)
    classroom_id = Column(String(64), nullable=False, index=True)
    student_uid = Column(
        String(128), ForeignKey("users.uid", ondelete="CASCADE"), nullable=False, index=True
    )
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("classroom_id", "student_uid", name="uq_classroom_members_classroom_student"),
    )

    student = relationship("User", back_populates="memberships")
