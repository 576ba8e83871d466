"""
Turning inbound payloads into uploads.

Callers hand over a byte stream; it is copied to a temporary local
file which the uploader reads from, then the temporary file is removed
whatever happens. The multipart/HTTP variant lives in api/ingestion.py
so this module stays free of web framework imports.
"""

import logging
import os
import secrets
import tempfile
from contextlib import contextmanager
from datetime import datetime
from typing import BinaryIO, Generator, Optional

from .errors import IngestionError
from .models import MultimediaAsset
from .uploader import AssetUploader

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def generate_upload_name(original_filename: str, now: Optional[datetime] = None) -> str:
    """
    Unique destination key for an upload.

    Format: {YYYYmmddHHMMSS}-{random 32-bit number}{extension}, keeping
    the original file's extension (with its dot) so stored objects stay
    recognisable.
    """
    now = now or datetime.now()
    extension = os.path.splitext(original_filename or "")[1]
    return f"{now:%Y%m%d%H%M%S}-{secrets.randbits(32)}{extension}"


@contextmanager
def temporary_upload(extension: str = "") -> Generator[BinaryIO, None, None]:
    """
    Provide a named temporary file that is always deleted afterwards.

    The file is created with delete=False so it can be reopened by name
    while the handle is still alive, then closed and unlinked on exit.
    """
    handle = tempfile.NamedTemporaryFile(prefix="upload-", suffix=extension, delete=False)
    try:
        yield handle
    finally:
        handle.close()
        try:
            os.unlink(handle.name)
        except FileNotFoundError:
            pass


def copy_exact(source: BinaryIO, target: BinaryIO, size: int) -> None:
    """Copy exactly size bytes, failing if the source ends early."""
    remaining = size
    while remaining > 0:
        chunk = source.read(min(COPY_CHUNK_SIZE, remaining))
        if not chunk:
            raise IngestionError(
                f"Stream ended after {size - remaining} of {size} bytes"
            )
        target.write(chunk)
        remaining -= len(chunk)


class IOFileUploader:
    """Uploads a raw byte stream of known length."""

    def __init__(self, uploader: AssetUploader) -> None:
        self._uploader = uploader

    def move_file(self, stream: BinaryIO, filename: str, size: int) -> MultimediaAsset:
        """
        Copy size bytes from stream into a temporary file and upload it.

        filename is the client's original name; only its extension is
        kept. Errors from the copy or the uploader propagate unchanged.
        """
        if size < 0:
            raise IngestionError("Upload size cannot be negative")

        extension = os.path.splitext(filename or "")[1]
        destination = generate_upload_name(filename)

        with temporary_upload(extension) as temp_file:
            copy_exact(stream, temp_file, size)
            temp_file.flush()

            logger.debug(
                "Buffered upload to temporary file",
                extra={"path": temp_file.name, "size_bytes": size, "key": destination},
            )

            return self._uploader.upload(temp_file.name, destination)


def spool_to_file(source: BinaryIO, target: BinaryIO, max_bytes: int) -> int:
    """
    Copy a whole stream, returning the byte count.

    Returns -1 as soon as more than max_bytes have been seen so the
    caller can reject oversized payloads without buffering them fully.
    """
    written = 0
    while True:
        chunk = source.read(COPY_CHUNK_SIZE)
        if not chunk:
            return written
        written += len(chunk)
        if written > max_bytes:
            return -1
        target.write(chunk)
