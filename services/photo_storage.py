"""
Job photo storage on the local upload folder.

Photos live at ``<UPLOAD_FOLDER>/job-photos/<job_id>/<timestamp>.<ext>`` and
are served back under ``PHOTO_URL_PREFIX``.
"""

import os
import logging
from datetime import datetime

from PIL import Image, UnidentifiedImageError

from services.errors import ServiceError

logger = logging.getLogger(__name__)

PHOTO_DIR = 'job-photos'


class PhotoStorage:
    """Writes, verifies and removes job photos on disk."""

    def __init__(self, upload_folder: str, url_prefix: str = '/uploads'):
        self.upload_folder = upload_folder
        self.url_prefix = url_prefix.rstrip('/')

    def save(self, job_id: str, file_storage, filename: str):
        """
        Store an uploaded photo for a job.

        Args:
            job_id: Job the photo belongs to
            file_storage: werkzeug FileStorage from request.files
            filename: Sanitised original filename, used for its extension

        Returns:
            Tuple of (public_url, storage_path) where storage_path is relative
            to the upload folder

        Raises:
            ServiceError: the upload is not a readable image
        """
        ext = filename.rsplit('.', 1)[1].lower()
        timestamp = datetime.utcnow().strftime('%Y%m%d%H%M%S%f')
        relative_path = f"{PHOTO_DIR}/{job_id}/{timestamp}.{ext}"

        self._verify(file_storage)

        full_path = os.path.join(self.upload_folder, *relative_path.split('/'))
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        file_storage.save(full_path)
        logger.info(f"Stored job photo: {relative_path}")

        return f"{self.url_prefix}/{relative_path}", relative_path

    @staticmethod
    def _verify(file_storage):
        """Reject uploads Pillow cannot identify as an image."""
        try:
            with Image.open(file_storage.stream) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logger.warning(f"Rejected photo upload: {e}")
            raise ServiceError("Uploaded file is not a valid image")
        finally:
            file_storage.stream.seek(0)

    def delete(self, storage_path: str) -> bool:
        """Remove a stored photo. Missing files are ignored."""
        if not storage_path:
            return False
        full_path = os.path.join(self.upload_folder, *storage_path.split('/'))
        if os.path.exists(full_path):
            os.remove(full_path)
            logger.info(f"Removed job photo: {storage_path}")
            return True
        return False
