from datetime import datetime

from app.schemas.common import CamelModel


class ClassroomTaskRead(CamelModel):
    id: str
    classroom_id: str
    task_name: str
    description: str = ""
    dead_line: datetime
    category: str = "Homework"
    files: list[str] = []
    created_at: datetime | None = None
    created_by: str | None = None
    updated_at: datetime | None = None


class ClassroomTaskDetails(CamelModel):
    success: bool = True
    task: ClassroomTaskRead


class ClassroomTaskList(CamelModel):
    success: bool = True
    count: int
    tasks: list[ClassroomTaskRead]


class ClassroomTaskSaved(CamelModel):
    success: bool = True
    message: str
    task_id: str
    files_uploaded: int = 0
    files_removed: int = 0
    total_files: int = 0


class ClassroomTaskDeleted(CamelModel):
    success: bool = True
    message: str
    files_deleted: int
