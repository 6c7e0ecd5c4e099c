from __future__ import annotations

import io
import os
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_FILENAME_LENGTH = 255

# extension -> MIME type
ACCEPTED_EXTENSIONS = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}
ACCEPTED_TYPES = ("image/jpeg", "image/png", "image/webp")
_PIL_FORMATS = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


@dataclass(frozen=True)
class FileValidationResult:
    is_valid: bool
    error: Optional[str] = None
    mime_type: Optional[str] = None


def mime_type_for(filename: str) -> Optional[str]:
    return ACCEPTED_EXTENSIONS.get(os.path.splitext(filename)[1].lower())


def validate_upload(filename: str, data: bytes) -> FileValidationResult:
    """
    Check type, size, name length and integrity of an uploaded photo.

    The MIME type in the result is the one Pillow detected from the content,
    which wins over the extension.
    """
    if mime_type_for(filename) is None:
        accepted = ", ".join(ACCEPTED_EXTENSIONS)
        return FileValidationResult(False, f"Unsupported file format. Please upload one of: {accepted}")

    if len(data) > MAX_FILE_SIZE:
        max_mb = MAX_FILE_SIZE // (1024 * 1024)
        return FileValidationResult(False, f"File is too large. The maximum size is {max_mb}MB.")

    if len(os.path.basename(filename)) > MAX_FILENAME_LENGTH:
        return FileValidationResult(False, "File name is too long, please rename the file.")

    if not data:
        return FileValidationResult(False, "File is empty.")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except Image.DecompressionBombError:
        return FileValidationResult(False, "Image dimensions are too large.")
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        return FileValidationResult(False, f"Image file is corrupted or not a valid image ({e}).")

    detected = _PIL_FORMATS.get(fmt or "")
    if detected is None:
        return FileValidationResult(False, f"Unsupported image content: {fmt}.")

    return FileValidationResult(True, mime_type=detected)
