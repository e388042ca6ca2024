"""Attachment storage backends.

Both backends hand out plain URL strings; those strings are what gets
persisted on classroom tasks (``files``), personal tasks (``attachments``)
and user profiles (``photo_url``).
"""
import logging
from functools import lru_cache
from pathlib import Path
from urllib.parse import unquote, urlparse

from firebase_admin import storage
from google.api_core import exceptions as gcloud_exceptions

from app.core.config import FIREBASE_STORAGE_BUCKET, MEDIA_ROOT, MEDIA_URL, STORAGE_BACKEND
from app.core.firebase import get_firebase_app

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class StorageObjectNotFound(StorageError):
    pass


class AttachmentStorage:
    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        raise NotImplementedError

    def delete(self, url: str) -> None:
        raise NotImplementedError

    def owns(self, url: str) -> bool:
        raise NotImplementedError

    def object_path(self, url: str) -> str | None:
        raise NotImplementedError


class LocalStorage(AttachmentStorage):
    """Files under a local directory, served by the app under ``base_url``."""

    def __init__(self, root: Path = MEDIA_ROOT, base_url: str = MEDIA_URL):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, url: str) -> Path:
        relative = self.object_path(url)
        if relative is None:
            raise StorageError(f"Not a local media URL: {url}")
        target = (self.root / relative).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Refusing path outside media root: {url}")
        return target

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return f"{self.base_url}/{path}"

    def delete(self, url: str) -> None:
        target = self._path_for(url)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise StorageObjectNotFound(url) from exc

    def owns(self, url: str) -> bool:
        return url.startswith(self.base_url + "/")

    def object_path(self, url: str) -> str | None:
        if not self.owns(url):
            return None
        return unquote(url[len(self.base_url) + 1 :])


class FirebaseStorage(AttachmentStorage):
    """Public objects in the project's Firebase Storage bucket."""

    def __init__(self, bucket_name: str | None = FIREBASE_STORAGE_BUCKET):
        self.bucket_name = bucket_name
        self._bucket = None

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = storage.bucket(self.bucket_name, app=get_firebase_app())
        return self._bucket

    def object_path(self, url: str) -> str | None:
        parsed = urlparse(url)
        # https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<encoded path>?alt=media
        if "/o/" in parsed.path:
            return unquote(parsed.path.split("/o/", 1)[1])
        # https://storage.googleapis.com/<bucket>/<path>
        if parsed.netloc == "storage.googleapis.com":
            bucket, _, path = parsed.path.lstrip("/").partition("/")
            if bucket == self.bucket.name and path:
                return unquote(path)
        return None

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        blob = self.bucket.blob(path)
        blob.upload_from_string(data, content_type=content_type or "application/octet-stream")
        blob.make_public()
        logger.debug("Uploaded %s to bucket %s", path, self.bucket.name)
        return blob.public_url

    def delete(self, url: str) -> None:
        path = self.object_path(url)
        if not path:
            raise StorageError(f"Could not extract object path from URL: {url}")
        try:
            self.bucket.blob(path).delete()
        except gcloud_exceptions.NotFound as exc:
            raise StorageObjectNotFound(url) from exc
        except gcloud_exceptions.GoogleAPICallError as exc:
            raise StorageError(str(exc)) from exc

    def owns(self, url: str) -> bool:
        return self.object_path(url) is not None


@lru_cache
def get_storage() -> AttachmentStorage:
    if STORAGE_BACKEND == "firebase":
        return FirebaseStorage()
    return LocalStorage()
