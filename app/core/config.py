import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/classroom_tasks.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Session cookie issued after Firebase ID-token verification
SESSION_COOKIE_NAME = "session"
SESSION_EXPIRES = timedelta(days=5)
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

# Firebase
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS")  # path to service account json
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_STORAGE_BUCKET = os.getenv("FIREBASE_STORAGE_BUCKET")

# Attachments: "local" (MEDIA_ROOT served under MEDIA_URL) or "firebase"
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", str(BASE_DIR / "media")))
MEDIA_URL = os.getenv("MEDIA_URL", "/media")

# Background reconciliation of student task copies, 0 disables it
SYNC_INTERVAL_SECONDS = int(os.getenv("SYNC_INTERVAL_SECONDS", "30"))

# Classrooms
CLASSROOM_CODE_LENGTH = 6
CLASSROOM_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
DEFAULT_CLASSROOM_CATEGORY = "Homework"
CLASSROOM_TASK_PRIORITY = 3  # copies of classroom tasks land at the top

# Personal tasks
DEFAULT_TASK_PRIORITY = 1
MIN_PRIORITY_LEVEL = 0
MAX_PRIORITY_LEVEL = 3
