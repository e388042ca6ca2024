from app.schemas.common import CamelModel


class SyncStats(CamelModel):
    classrooms_deleted: int = 0
    tasks_deleted: int = 0
    tasks_added: int = 0
    tasks_updated: int = 0
    notifications: int = 0


class SyncResult(CamelModel):
    success: bool = True
    message: str
    stats: SyncStats
