"""Upload boundary: validate and persist an incoming file before ingestion.

Uploads are streamed to ``upload_dir`` in 64 KB increments so an oversized
file is rejected after writing at most ``max_bytes`` instead of being
buffered whole.  Every rejection raises
:class:`~docdesk.utils.errors.ValidationError` and leaves nothing on disk.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path

import structlog
from fastapi import UploadFile

from docdesk.utils.errors import ValidationError

logger = structlog.get_logger(logger_name=__name__)

_UPLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB


@dataclass(frozen=True)
class SavedUpload:
    path: Path
    original_name: str
    file_type: str  # extension without the dot


def validate_extension(filename: str, allowed_extensions: list[str]) -> str:
    """Return the lower-cased extension of *filename* (with dot) if allowed."""
    extension = Path(filename).suffix.lower()
    if extension not in allowed_extensions:
        raise ValidationError(
            message=(
                f"Invalid file type '{extension or filename}'. "
                f"Allowed: {', '.join(allowed_extensions)}"
            ),
        )
    return extension


async def save_upload(
    upload: UploadFile | None,
    upload_dir: str | Path,
    allowed_extensions: list[str],
    max_bytes: int,
) -> SavedUpload:
    """Stream *upload* to a uniquely named file under *upload_dir*.

    Raises
    ------
    ValidationError
        If no file was sent, its extension is not allowed, or it exceeds
        *max_bytes*.
    """
    if upload is None or not upload.filename:
        raise ValidationError(message="No file uploaded")

    original_name = Path(upload.filename).name
    extension = validate_extension(original_name, allowed_extensions)

    target_dir = Path(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{uuid.uuid4().hex}{extension}"

    total_size = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = await upload.read(_UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > max_bytes:
                    raise ValidationError(
                        message=(
                            f"File too large: limit is {max_bytes // (1024 * 1024)} MB "
                            f"({max_bytes} bytes)"
                        ),
                    )
                out.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise

    logger.info(
        "upload_saved",
        original_name=original_name,
        stored_as=target.name,
        bytes=total_size,
    )
    return SavedUpload(path=target, original_name=original_name, file_type=extension.lstrip("."))
