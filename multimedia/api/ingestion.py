"""
Multipart upload ingestion.

Extracts one file from a multipart request into a temporary file and
hands it to the AssetUploader. The blocking parts (copying the spooled
upload, talking to S3/DynamoDB) run through asyncio.to_thread so the
event loop is never blocked.
"""

import asyncio
import logging
import os

from fastapi import Request
from starlette.datastructures import UploadFile

from ..core.assets.errors import IngestionError, UploadTooLargeError
from ..core.assets.ingestion import generate_upload_name, spool_to_file, temporary_upload
from ..core.assets.models import MultimediaAsset
from ..core.assets.uploader import AssetUploader

logger = logging.getLogger(__name__)

# Room for boundaries, part headers and other form fields. Content-Length
# covers the whole multipart body, the limit only the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024

DEFAULT_MAX_UPLOAD_BYTES = 32 * 1024 * 1024


class HttpFileUploader:
    """Uploads the file found under one multipart form field."""

    def __init__(self, uploader: AssetUploader, max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES) -> None:
        self._uploader = uploader
        self._max_bytes = max_upload_bytes

    async def move_file(self, request: Request, key: str) -> MultimediaAsset:
        """
        Parse the form, buffer the file under key and upload it.

        Form parsing errors and uploader errors propagate unchanged.
        The temporary file and the form's spooled files are released on
        every path.

        The size limit applies to the file. A Content-Length beyond the
        limit plus multipart overhead is refused before the body is
        parsed; otherwise the limit is enforced while spooling.
        """
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self._max_bytes + MULTIPART_OVERHEAD_BYTES:
            raise UploadTooLargeError(f"Upload exceeds the {self._max_bytes} byte limit")

        form = await request.form()
        try:
            upload = form.get(key)
            if not isinstance(upload, UploadFile):
                raise IngestionError(f"Form field '{key}' does not contain a file")

            original_name = upload.filename or ""
            extension = os.path.splitext(original_name)[1]
            destination = generate_upload_name(original_name)

            with temporary_upload(extension) as temp_file:
                size = await asyncio.to_thread(spool_to_file, upload.file, temp_file, self._max_bytes)
                if size < 0:
                    raise UploadTooLargeError(f"Upload exceeds the {self._max_bytes} byte limit")
                temp_file.flush()

                logger.info(
                    "Multipart upload received",
                    extra={
                        "upload_filename": original_name,
                        "size_bytes": size,
                        "key": destination,
                    },
                )

                return await asyncio.to_thread(self._uploader.upload, temp_file.name, destination)
        finally:
            await form.close()
