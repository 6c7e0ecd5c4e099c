from __future__ import annotations

import io
import os

from PIL import Image, ImageOps

from idphotoshop.core.errors import UploadError
from idphotoshop.core.models import UploadedImage
from idphotoshop.validation.upload_rules import validate_upload


def _image_size(data: bytes) -> tuple[int, int]:
    """Pixel dimensions as displayed, i.e. after EXIF orientation."""
    with Image.open(io.BytesIO(data)) as img:
        img = ImageOps.exif_transpose(img)
        return img.width, img.height


def image_from_bytes(data: bytes, filename: str) -> UploadedImage:
    check = validate_upload(filename, data)
    if not check.is_valid:
        raise UploadError(check.error or "Invalid image file.", {"filename": filename})

    try:
        width, height = _image_size(data)
    except (OSError, Image.DecompressionBombError) as e:
        raise UploadError(f"Could not read image dimensions: {e}", {"filename": filename}) from e

    return UploadedImage(
        data=data,
        filename=os.path.basename(filename),
        mime_type=check.mime_type or "image/jpeg",
        width=width,
        height=height,
    )


def load_uploaded_image(path: str) -> UploadedImage:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise UploadError(f"Could not open image: {e}", {"filename": path}) from e
    return image_from_bytes(data, path)
