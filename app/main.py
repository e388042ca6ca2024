import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.core.config import LOG_LEVEL, MEDIA_ROOT, MEDIA_URL, STORAGE_BACKEND, SYNC_INTERVAL_SECONDS
from app.core.errors import register_exception_handlers
from app.core.logging_middleware import LoggingMiddleware
from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.routers.auth import router as auth_router
from app.routers.categories import router as categories_router
from app.routers.classroom_tasks import router as classroom_tasks_router
from app.routers.classrooms import router as classrooms_router
from app.routers.profile import router as profile_router
from app.routers.tasks import router as tasks_router
from app.services.scheduler import SyncScheduler

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(title="Classroom Tasks")

# Middleware
app.add_middleware(LoggingMiddleware)
register_exception_handlers(app)

app.state.sync_scheduler = SyncScheduler(SessionLocal, SYNC_INTERVAL_SECONDS)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


@app.on_event("startup")
async def on_startup():
    init_db()
    app.state.sync_scheduler.start()


@app.on_event("shutdown")
async def on_shutdown():
    await app.state.sync_scheduler.stop()


# Include routers
app.include_router(auth_router, prefix="/auth", tags=["auth"])
app.include_router(profile_router, prefix="/profile", tags=["profile"])
app.include_router(classrooms_router, prefix="/classrooms", tags=["classrooms"])
app.include_router(classroom_tasks_router, prefix="/classrooms", tags=["classroom tasks"])
app.include_router(tasks_router, prefix="/tasks", tags=["tasks"])
app.include_router(categories_router, prefix="/categories", tags=["categories"])

# Uploaded files when running without Firebase Storage
if STORAGE_BACKEND == "local":
    app.mount(MEDIA_URL, StaticFiles(directory=MEDIA_ROOT, check_dir=False), name="media")
