"""
Object storage for uploaded documents (operator licenses).

``FileStorage`` is the seam the contract workflow talks to; the default
``LocalFileStorage`` keeps files under ``STORAGE_ROOT`` and hands out URLs
under ``STORAGE_BASE_URL`` (served as static files). A public id is the
file's path relative to the storage root.
"""

import logging
import os
import re
import uuid
from typing import Optional, Protocol

from src.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(Exception):
    """Raised when a file cannot be stored or removed"""


class FileStorage(Protocol):
    def upload(self, content: bytes, filename: str, folder: str) -> str: ...

    def delete(self, public_id: str) -> bool: ...

    def extract_public_id(self, url: str) -> Optional[str]: ...


class LocalFileStorage:
    """Disk-backed storage serving files from a static URL prefix"""

    def __init__(self, root: str, base_url: str):
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip("/")

    def upload(self, content: bytes, filename: str, folder: str) -> str:
        if not content:
            raise StorageError(f"Refusing to store empty file: {filename}")

        safe_name = _UNSAFE_CHARS.sub("_", os.path.basename(filename or "file")).strip("_") or "file"
        public_id = f"{folder.strip('/')}/{uuid.uuid4().hex}_{safe_name}"
        path = self._path_for(public_id)

        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(content)
        except OSError as exc:
            raise StorageError(f"Could not write {public_id}: {exc}") from exc

        logger.info("Stored file %s (%d bytes)", public_id, len(content))
        return f"{self.base_url}/{public_id}"

    def delete(self, public_id: str) -> bool:
        path = self._path_for(public_id)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning("File %s already removed", public_id)
            return False
        except OSError as exc:
            raise StorageError(f"Could not delete {public_id}: {exc}") from exc

        logger.info("Deleted file %s", public_id)
        return True

    def extract_public_id(self, url: str) -> Optional[str]:
        prefix = f"{self.base_url}/"
        if not url or not url.startswith(prefix):
            return None
        public_id = url[len(prefix):]
        return public_id or None

    def _path_for(self, public_id: str) -> str:
        path = os.path.abspath(os.path.join(self.root, public_id))
        if os.path.commonpath([self.root, path]) != self.root:
            raise StorageError(f"Public id escapes storage root: {public_id}")
        return path


def get_file_storage() -> FileStorage:
    return LocalFileStorage(settings.STORAGE_ROOT, settings.STORAGE_BASE_URL)
