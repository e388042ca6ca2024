from pydantic import Field

from app.schemas.common import CamelModel


class ClassroomCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)


class ClassroomJoin(CamelModel):
    code: str = Field(min_length=1, max_length=16)


class ClassroomCreated(CamelModel):
    success: bool = True
    classroom_id: str = Field(alias="classroomID")
    code: str
    name: str


class ClassroomJoined(CamelModel):
    success: bool = True
    classroom_id: str = Field(alias="classroomID")
    name: str
    code: str
    tasks_count: int = 0
    already_joined: bool = False
    message: str | None = None


class ClassroomSummary(CamelModel):
    classroom_id: str = Field(alias="classroomID")
    name: str
    task_count: int
    is_teacher: bool


class ClassroomList(CamelModel):
    success: bool = True
    count: int
    classrooms: list[ClassroomSummary]


class ClassroomBasic(CamelModel):
    id: str
    name: str
    code: str
    teacher: str


class ClassroomInfo(CamelModel):
    classroom: ClassroomBasic
    teacher_name: str
    tasks: list[str]
    students: list[str]
    user_role: str


class ClassroomLeft(CamelModel):
    success: bool = True
    tasks_deleted: int


class ClassroomDeleteStats(CamelModel):
    students_affected: int
    tasks_deleted: int


class ClassroomDeleted(CamelModel):
    success: bool = True
    message: str
    stats: ClassroomDeleteStats
