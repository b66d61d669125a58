"""
Image upload pipeline.

Attachments are gated on their declared content type, written under the
content root with a timestamped name, and exposed as
``<scheme>://<host>/public/uploads/<filename>``.
"""
import logging
import os
import re
import shutil
import time
from typing import List
from urllib.parse import quote

from fastapi import Request, UploadFile

from errors import UploadError

logger = logging.getLogger(__name__)

FILE_TYPE_MAP = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}
PUBLIC_PREFIX = "/public/uploads/"
MAX_GALLERY_FILES = 10


def image_extension(file: UploadFile) -> str:
    extension = FILE_TYPE_MAP.get(file.content_type)
    if not extension:
        raise UploadError("Invalid image type!")
    return extension


def build_filename(original_name: str, extension: str, timestamp: int) -> str:
    name = re.sub(r"\s+", "-", os.path.basename(original_name or "image").strip())
    return f"{name}-{timestamp}.{extension}"


def save_image(file: UploadFile, upload_dir: str) -> str:
    """Write ``file`` under ``upload_dir`` and return the stored filename."""
    extension = image_extension(file)
    os.makedirs(upload_dir, exist_ok=True)
    timestamp = int(time.time() * 1000)
    while True:
        filename = build_filename(file.filename, extension, timestamp)
        try:
            out = open(os.path.join(upload_dir, filename), "xb")
        except FileExistsError:
            # same name within the same millisecond
            timestamp += 1
            continue
        with out:
            shutil.copyfileobj(file.file, out)
        logger.info("Stored upload %s as %s", file.filename, filename)
        return filename


def public_url(request: Request, filename: str) -> str:
    return f"{request.url.scheme}://{request.url.netloc}{PUBLIC_PREFIX}{quote(filename)}"


def store_image(request: Request, file: UploadFile) -> str:
    filename = save_image(file, request.app.state.upload_dir)
    return public_url(request, filename)


def store_images(request: Request, files: List[UploadFile]) -> List[str]:
    if len(files) > MAX_GALLERY_FILES:
        raise UploadError(f"At most {MAX_GALLERY_FILES} images are allowed!")
    # reject the whole batch before anything is written
    for file in files:
        image_extension(file)
    return [store_image(request, file) for file in files]
