import logging
import os
import uuid
from typing import Optional

from fastapi import UploadFile

from stockroom.config import get_settings
from stockroom.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/jpg", "image/webp"}
PRODUCT_IMAGE_SUBDIR = "products"

_CHUNK_SIZE = 1024 * 1024


def product_upload_dir() -> str:
    return os.path.join(get_settings().UPLOAD_DIR, PRODUCT_IMAGE_SUBDIR)


def ensure_upload_dirs() -> None:
    os.makedirs(product_upload_dir(), exist_ok=True)


def delete_product_image(filename: Optional[str]) -> bool:
    """
    Remove a stored product image. Failures are logged, not raised.

    Returns:
        True if the file was removed
    """
    if not filename:
        return False
    path = os.path.join(product_upload_dir(), os.path.basename(filename))
    try:
        os.remove(path)
        logger.info(f"Deleted product image {filename}")
        return True
    except OSError as e:
        logger.error(f"Could not delete product image {filename}: {e}")
        return False


class ImageUpload:
    """
    Scoped ownership of an uploaded product image.

    The file is written to disk on ``__enter__`` under a random name. Unless
    ``keep()`` is called before the block exits, the file is deleted again,
    so every failed create/update leaves no orphan behind::

        with ImageUpload(upload) as image:
            product = service.create(..., image_filename=image.filename)
            image.keep()

    A ``None`` or empty upload yields an instance whose ``filename`` is None.
    """

    def __init__(self, upload: Optional[UploadFile]):
        self.upload = upload if upload is not None and upload.filename else None
        self.filename: Optional[str] = None
        self._kept = False

    def __enter__(self) -> "ImageUpload":
        if self.upload is not None:
            self.filename = self._store(self.upload)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.filename and not self._kept:
            delete_product_image(self.filename)
        return False

    def keep(self) -> None:
        self._kept = True

    def _store(self, upload: UploadFile) -> str:
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError("Only image files are allowed (jpeg, png, jpg, webp)")

        max_size = get_settings().MAX_UPLOAD_SIZE
        ext = os.path.splitext(upload.filename)[1].lower()
        filename = f"{uuid.uuid4()}{ext}"

        ensure_upload_dirs()
        path = os.path.join(product_upload_dir(), filename)
        written = 0
        try:
            with open(path, "wb") as out:
                while True:
                    chunk = upload.file.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > max_size:
                        raise ValidationError(
                            f"File is too large. Maximum allowed: {max_size // (1024 * 1024)}MB"
                        )
                    out.write(chunk)
        except Exception:
            delete_product_image(filename)
            raise

        logger.info(f"Stored product image {filename} ({written} bytes)")
        return filename
