# materials/storage.py
import logging
import os
import uuid
from dataclasses import dataclass
from django.conf import settings
from django.core.files.storage import default_storage
from core.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlob:
    locator: str
    url: str
    size: int


class DjangoBlobStore:
    """
    Stores uploaded material files through Django's storage API, so the same
    code writes to MEDIA_ROOT in development and to S3 in production.
    """

    def __init__(self, storage=None, upload_dir=None):
        self.storage = storage or default_storage
        self.upload_dir = upload_dir or getattr(settings, 'MATERIAL_UPLOAD_DIR', 'uploads/materials')

    def _name_for(self, filename):
        ext = os.path.splitext(filename or '')[1].lower()
        return f"{self.upload_dir}/{uuid.uuid4().hex}{ext}"

    def store(self, upload, content_type=None):
        """Writes the upload and returns its locator. Raises StorageUnavailable on any backend failure."""
        name = self._name_for(getattr(upload, 'name', ''))
        try:
            if hasattr(upload, 'seek'):
                upload.seek(0)
            locator = self.storage.save(name, upload)
            url = self.storage.url(locator)
        except Exception as e:
            logger.error(f"Blob store write failed for {name}: {e}", exc_info=True)
            raise StorageUnavailable("File storage is temporarily unavailable. Please try again.")
        return StoredBlob(locator=locator, url=url, size=getattr(upload, 'size', 0) or 0)

    def exists(self, locator):
        return self.storage.exists(locator)

    def delete(self, locator):
        self.storage.delete(locator)
