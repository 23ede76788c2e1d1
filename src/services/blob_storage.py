"""Blob storage used for uploaded files (avatars, logos, attachments).

Files are addressed by key. Deleting a key that no longer exists is not
an error, so repeated cascades stay idempotent.
"""

from functools import lru_cache
from pathlib import Path
from typing import Protocol

import aiofiles.os

from src.config import settings
from src.logging_config import get_logger

logger = get_logger(__name__)


class StorageDeleteError(Exception):
    """A blob could not be deleted."""


class BlobStorage(Protocol):
    async def delete_file(self, storage_key: str) -> None:
        """Delete the blob at ``storage_key``; missing blobs are ignored."""
        ...


class LocalBlobStorage:
    """Blob storage on a local (or mounted) filesystem directory."""

    def __init__(self, root: str | Path):
        self._root = Path(root).resolve()

    def _path_for(self, storage_key: str) -> Path:
        path = (self._root / storage_key).resolve()
        if not path.is_relative_to(self._root):
            raise StorageDeleteError(f"Storage key escapes storage root: {storage_key!r}")
        return path

    async def delete_file(self, storage_key: str) -> None:
        path = self._path_for(storage_key)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug("Blob already gone", storage_key=storage_key)
            return
        except OSError as exc:
            raise StorageDeleteError(f"Failed to delete {storage_key!r}: {exc}") from exc
        logger.debug("Blob deleted", storage_key=storage_key)


@lru_cache
def get_blob_storage() -> BlobStorage:
    """FastAPI dependency returning the configured blob storage."""
    return LocalBlobStorage(settings.blob_storage_root)
