"""initial classroom tasks schema

Revision ID: 3f9c1e27b8a4
Revises: 
Create Date: 2026-10-19 10:12:41.318215

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1e27b8a4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("google_linked", sa.Boolean(), nullable=False),
        sa.Column("google_email", sa.String(length=255), nullable=True),
        sa.Column("google_uid", sa.String(length=128), nullable=True),
        sa.Column("original_display_name", sa.String(length=255), nullable=True),
        sa.Column("original_photo_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=False)
    op.create_index(op.f("ix_users_google_uid"), "users", ["google_uid"], unique=False)

    op.create_table(
        "classrooms",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False),
        sa.Column("teacher_uid", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["teacher_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_classrooms_code"), "classrooms", ["code"], unique=True)
    op.create_index(op.f("ix_classrooms_teacher_uid"), "classrooms", ["teacher_uid"], unique=False)

    op.create_table(
        "classroom_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("classroom_id", sa.String(length=64), nullable=False),
        sa.Column("student_uid", sa.String(length=128), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["student_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("classroom_id", "student_uid", name="uq_classroom_members_classroom_student"),
    )
    op.create_index(op.f("ix_classroom_members_id"), "classroom_members", ["id"], unique=False)
    op.create_index(op.f("ix_classroom_members_classroom_id"), "classroom_members", ["classroom_id"], unique=False)
    op.create_index(op.f("ix_classroom_members_student_uid"), "classroom_members", ["student_uid"], unique=False)

    op.create_table(
        "classroom_tasks",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("classroom_id", sa.String(length=64), nullable=False),
        sa.Column("task_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("dead_line", sa.DateTime(timezone=True), nullable=False),
        sa.Column("category", sa.String(length=255), nullable=False),
        sa.Column("files", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("created_by", sa.String(length=128), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["classroom_id"], ["classrooms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_classroom_tasks_classroom_id"), "classroom_tasks", ["classroom_id"], unique=False)

    op.create_table(
        "tasks",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("owner_uid", sa.String(length=128), nullable=False),
        sa.Column("task_name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=255), nullable=True),
        sa.Column("priority_level", sa.Integer(), nullable=False),
        sa.Column("dead_line", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_finished", sa.Boolean(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("classroom_id", sa.String(length=64), nullable=True),
        sa.Column("classroom_task_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("priority_level BETWEEN 0 AND 3", name="ck_tasks_priority_level"),
        sa.ForeignKeyConstraint(["owner_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_uid", "classroom_task_id", name="uq_tasks_owner_classroom_task"),
    )
    op.create_index(op.f("ix_tasks_owner_uid"), "tasks", ["owner_uid"], unique=False)
    op.create_index(op.f("ix_tasks_classroom_id"), "tasks", ["classroom_id"], unique=False)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_uid", sa.String(length=128), nullable=False),
        sa.Column("category_name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=True),
        sa.ForeignKeyConstraint(["owner_uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_uid", "category_name", name="uq_categories_owner_name"),
    )
    op.create_index(op.f("ix_categories_id"), "categories", ["id"], unique=False)
    op.create_index(op.f("ix_categories_owner_uid"), "categories", ["owner_uid"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("categories")
    op.drop_table("tasks")
    op.drop_table("classroom_tasks")
    op.drop_table("classroom_members")
    op.drop_table("classrooms")
    op.drop_table("users")
