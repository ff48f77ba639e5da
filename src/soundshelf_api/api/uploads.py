"""Staging of multipart uploads onto disk."""

import logging
import os
import tempfile
from pathlib import Path

from fastapi import UploadFile

from soundshelf_api.api.exceptions import UploadTooLargeError, ValidationError
from soundshelf_api.services.ingestion import StagedUpload

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def stage_upload(file: UploadFile, temp_dir: Path, max_bytes: int) -> StagedUpload:
    """Copy an uploaded file to a temp path, enforcing the size cap.

    The temp file is removed if staging fails. Once returned, the caller
    owns it.

    Raises:
        ValidationError: If the upload has no filename.
        UploadTooLargeError: If more than max_bytes arrive.
    """
    if not file.filename:
        raise ValidationError("No file uploaded", operation="upload")

    temp_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename).suffix.lower()
    fd, name = tempfile.mkstemp(dir=temp_dir, prefix="upload-", suffix=suffix)
    path = Path(name)
    written = 0
    try:
        with os.fdopen(fd, "wb") as out:
            while chunk := file.file.read(_CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(max_bytes)
                out.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    logger.debug("Staged %s (%d bytes) at %s", file.filename, written, path)
    return StagedUpload(
        path=path,
        original_filename=Path(file.filename).name,
        content_type=file.content_type,
    )


def discard_staged(uploads: list[StagedUpload]) -> None:
    """Remove temp files of uploads that were never handed over."""
    for upload in uploads:
        upload.path.unlink(missing_ok=True)
