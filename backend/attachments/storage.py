"""
Local filesystem storage for task attachments.

Files are written under UPLOAD_DIR as ``{epoch_ms}-{16 hex}{ext}``; the
database keeps that filename and the original name separately.
"""
import logging
import os
import secrets
import time
import uuid
from datetime import datetime, timezone as dt_timezone
from typing import List, NamedTuple, Optional

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = 'application/octet-stream'

MIME_TYPES = {
    '.pdf': 'application/pdf',
    '.doc': 'application/msword',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.xls': 'application/vnd.ms-excel',
    '.xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.svg': 'image/svg+xml',
    '.txt': 'text/plain',
    '.csv': 'text/csv',
    '.zip': 'application/zip',
    '.json': 'application/json',
}


class UploadedFile(NamedTuple):
    id: str
    original_name: str
    filename: str
    mime_type: str
    size: int
    path: str
    uploaded_at: datetime


class StoredFile(NamedTuple):
    content: bytes
    mime_type: str


class FileStats(NamedTuple):
    size: int
    created: datetime
    modified: datetime


def guess_mime_type(filename):
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


class LocalStorageService:
    def __init__(self, upload_dir=None):
        self.upload_dir = str(upload_dir or settings.UPLOAD_DIR)
        os.makedirs(self.upload_dir, exist_ok=True)

    def generate_filename(self, original_name):
        ext = os.path.splitext(original_name)[1]
        return f"{int(time.time() * 1000)}-{secrets.token_hex(8)}{ext}"

    def _path(self, filename):
        """Absolute path for a stored filename, or None for names that try to leave the directory"""
        if not filename or filename in ('.', '..') or os.path.basename(filename) != filename or '\\' in filename:
            return None
        return os.path.join(self.upload_dir, filename)

    def save_file(self, content, original_name, mime_type) -> UploadedFile:
        """Write ``content`` (bytes or an iterable of byte chunks) under a generated name"""
        filename = self.generate_filename(original_name)
        file_path = os.path.join(self.upload_dir, filename)

        with open(file_path, 'wb') as fh:
            if isinstance(content, (bytes, bytearray)):
                fh.write(content)
            else:
                for chunk in content:
                    fh.write(chunk)

        size = os.path.getsize(file_path)
        logger.info(f"Stored upload {original_name} as {filename} ({size} bytes)")
        return UploadedFile(
            id=str(uuid.uuid4()),
            original_name=original_name,
            filename=filename,
            mime_type=mime_type,
            size=size,
            path=file_path,
            uploaded_at=timezone.now(),
        )

    def get_file(self, filename) -> Optional[StoredFile]:
        file_path = self._path(filename)
        if file_path is None or not os.path.isfile(file_path):
            return None
        with open(file_path, 'rb') as fh:
            content = fh.read()
        return StoredFile(content=content, mime_type=guess_mime_type(filename))

    def delete_file(self, filename) -> bool:
        file_path = self._path(filename)
        if file_path is None or not os.path.isfile(file_path):
            return False
        os.remove(file_path)
        return True

    def list_files(self) -> List[str]:
        return sorted(
            name for name in os.listdir(self.upload_dir)
            if os.path.isfile(os.path.join(self.upload_dir, name))
        )

    def get_file_stats(self, filename) -> Optional[FileStats]:
        file_path = self._path(filename)
        if file_path is None or not os.path.isfile(file_path):
            return None
        stat = os.stat(file_path)
        return FileStats(
            size=stat.st_size,
            created=datetime.fromtimestamp(stat.st_ctime, tz=dt_timezone.utc),
            modified=datetime.fromtimestamp(stat.st_mtime, tz=dt_timezone.utc),
        )
