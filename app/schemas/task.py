from datetime import datetime

from pydantic import Field, field_validator

from app.core.config import DEFAULT_TASK_PRIORITY, MAX_PRIORITY_LEVEL, MIN_PRIORITY_LEVEL
from app.schemas.common import CamelModel, to_utc


class TaskCreate(CamelModel):
    task_name: str = Field(min_length=1, max_length=255)
    description: str = ""
    category: str = Field(min_length=1, max_length=255)
    priority_level: int = Field(
        default=DEFAULT_TASK_PRIORITY, ge=MIN_PRIORITY_LEVEL, le=MAX_PRIORITY_LEVEL
    )
    dead_line: datetime
    is_finished: bool = False

    @field_validator("dead_line")
    @classmethod
    def deadline_in_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)


class TaskUpdate(CamelModel):
    task_name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=255)
    priority_level: int | None = Field(
        default=None, ge=MIN_PRIORITY_LEVEL, le=MAX_PRIORITY_LEVEL
    )
    dead_line: datetime | None = None
    is_finished: bool | None = None
    attachments: list[str] | None = None

    @field_validator("dead_line")
    @classmethod
    def deadline_in_utc(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)


class TaskRead(CamelModel):
    id: str
    task_name: str
    description: str = ""
    category: str | None = None
    priority_level: int
    dead_line: datetime | None = None
    is_finished: bool
    attachments: list[str] = []
    classroom_id: str | None = Field(default=None, alias="classroom")
    classroom_task_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskDetails(TaskRead):
    created_by: str | None = None
    created_by_name: str = "Unknown"


class TaskResponse(CamelModel):
    success: bool = True
    message: str | None = None
    task: TaskRead


class TaskDetailsResponse(CamelModel):
    success: bool = True
    task: TaskDetails


class TaskList(CamelModel):
    success: bool = True
    count: int
    tasks: list[TaskRead]


class AttachmentDelete(CamelModel):
    file_urls: list[str] = Field(min_length=1)


class AttachmentDeletion(CamelModel):
    url: str
    success: bool
    error: str | None = None


class AttachmentDeleteResult(CamelModel):
    success: bool = True
    message: str
    deletion_results: list[AttachmentDeletion]
    remaining_attachments: list[str]
