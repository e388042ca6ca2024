from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    # Firebase uid of the account's primary identity
    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    display_name: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str | None] = mapped_column(String(255))
    photo_url: Mapped[str | None] = mapped_column(Text)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")

    # Google link state, originals are restored on unlink
    google_linked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    google_email: Mapped[str | None] = mapped_column(String(255))
    google_uid: Mapped[str | None] = mapped_column(String(128), index=True)
    original_display_name: Mapped[str | None] = mapped_column(String(255))
    original_photo_url: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    memberships = relationship(
        "ClassroomMember", back_populates="student", cascade="all, delete-orphan"
    )

    tasks = relationship("Task", back_populates="owner", cascade="all, delete-orphan")

    categories = relationship(
        "Category", back_populates="owner", cascade="all, delete-orphan"
    )

    @property
    def classroom_ids(self) -> list[str]:
        return [m.classroom_id for m in self.memberships]

    def __repr__(self) -> str:
        return f"<User uid={self.uid} email={self.email} role={self.role}>"
