import logging
import posixpath
import re
import time

from fastapi import UploadFile

from app.core.storage import AttachmentStorage, StorageError, StorageObjectNotFound
from app.schemas.task import AttachmentDeletion

logger = logging.getLogger(__name__)


def _safe_name(filename: str) -> str:
    name = re.sub(r"\s+", "_", filename or "file")
    return name.replace("/", "_")


def classroom_file_path(classroom_id: str, filename: str) -> str:
    return f"classrooms/{classroom_id}/tasks/{int(time.time() * 1000)}-{_safe_name(filename)}"


def task_files_prefix(uid: str) -> str:
    return f"tasks/{uid}/"


def avatar_prefix(uid: str) -> str:
    return f"avatars/{uid}/"


def stored_under(storage: AttachmentStorage, url: str, prefix: str) -> bool:
    """True when ``url`` is an object of ``storage`` inside the ``prefix`` folder."""
    path = storage.object_path(url)
    if not path:
        return False
    return posixpath.normpath(path).startswith(prefix)


def upload_classroom_files(
    storage: AttachmentStorage, classroom_id: str, uploads: list[UploadFile]
) -> list[str]:
    """Store uploaded files, skipping empty ones and ones that fail to upload."""
    urls: list[str] = []
    for upload in uploads:
        data = upload.file.read()
        if not data:
            continue
        path = classroom_file_path(classroom_id, upload.filename)
        try:
            urls.append(storage.upload(path, data, upload.content_type))
        except (StorageError, OSError) as exc:
            logger.warning("Upload of %s failed, skipping: %s", upload.filename, exc)
            continue
        logger.info("Uploaded %s (%d bytes)", path, len(data))
    return urls


def delete_files(storage: AttachmentStorage, urls: list[str]) -> list[AttachmentDeletion]:
    """Best-effort removal; an object that is already gone counts as deleted."""
    results: list[AttachmentDeletion] = []
    for url in urls:
        try:
            storage.delete(url)
        except StorageObjectNotFound:
            logger.info("Attachment %s already gone", url)
        except (StorageError, OSError) as exc:
            logger.warning("Could not delete attachment %s: %s", url, exc)
            results.append(AttachmentDeletion(url=url, success=False, error=str(exc)))
            continue
        results.append(AttachmentDeletion(url=url, success=True))
    return results
