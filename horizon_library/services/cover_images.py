import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from horizon_library.core.errors import StorageError, UploadTooLargeError, ValidationError
from horizon_library.services.file_storage import FileStorage

logger = logging.getLogger(__name__)

ALLOWED_EXTS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}


@dataclass
class CoverUpload:
    data: bytes
    filename: str
    content_type: Optional[str] = None


class CoverImageManager:
    """Keeps each book's cover file owned by exactly one record.

    Replacing or clearing a cover releases the old file in the same request.
    Releases are best-effort: a failed delete is logged and never changes the
    outcome of the record write.
    """

    def __init__(self, storage: FileStorage, max_size_mb: int = 5):
        self.storage = storage
        self.max_size_bytes = max_size_mb * 1024 * 1024

    def check(self, upload: CoverUpload) -> None:
        _, ext = os.path.splitext((upload.filename or "").lower())
        if ext not in ALLOWED_EXTS:
            raise ValidationError("Only jpg/jpeg/png/gif/webp images allowed")
        if len(upload.data) > self.max_size_bytes:
            raise UploadTooLargeError()

    def stage(self, upload: Optional[CoverUpload]) -> Optional[str]:
        if upload is None or not upload.data:
            return None
        self.check(upload)
        return self.storage.store(upload.data, upload.filename)

    @staticmethod
    def resolve(current: Optional[str], new_ref: Optional[str], clear: bool) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(reference to keep, reference to release)``."""
        if new_ref is not None:
            stale = current if current and current != new_ref else None
            return new_ref, stale
        if clear:
            return None, current
        return current, None

    def release(self, reference: Optional[str]) -> None:
        if not reference:
            return
        try:
            self.storage.delete(reference)
        except StorageError as e:
            logger.warning("Could not release cover image %s: %s", reference, e.detail)

    def discard(self, reference: Optional[str]) -> None:
        if reference:
            logger.info("Discarding cover image %s from failed request", reference)
        self.release(reference)
