import io
import logging
import re
import uuid
from pathlib import Path
from typing import Iterable, Optional, Tuple

from fastapi import HTTPException, UploadFile
from PIL import Image

from mangareader.config import Settings

logger = logging.getLogger(__name__)

ALLOWED_MIMES = {"image/png", "image/jpeg", "image/webp", "image/gif"}

_SAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]+")


def sanitize_filename(name: str) -> str:
    """
    Make sure filenames are URL-safe:
    - Trim whitespace
    - Replace spaces with '_'
    - Replace unsafe chars with '-'
    - Collapse repeats
    """
    name = Path(name or "").name.strip()
    name = re.sub(r"\s+", "_", name)
    name = _SAFE_FILENAME_RE.sub("-", name)
    name = re.sub(r"-{2,}", "-", name)
    if not name.strip("._-"):
        name = "image"
    return name


def sniff_image_dims(data: bytes) -> Optional[Tuple[int, int]]:
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.verify()
            return int(im.width), int(im.height)
    except Exception:
        return None


async def save_image(file: UploadFile, settings: Settings) -> str:
    """
    Validate an uploaded image and store it under IMAGE_PATH.
    Returns the public URL: <IMAGE_URL_PREFIX>/<uuid>_<filename>.
    """
    blob = await file.read()
    if not blob:
        raise HTTPException(status_code=400, detail="Empty file.")
    if len(blob) > settings.max_upload_bytes:
        raise HTTPException(status_code=400, detail="File upload error")
    if file.content_type not in ALLOWED_MIMES or sniff_image_dims(blob) is None:
        raise HTTPException(status_code=400, detail="Unsupported image type.")

    folder = Path(settings.image_path)
    folder.mkdir(parents=True, exist_ok=True)

    filename = f"{uuid.uuid4()}_{sanitize_filename(file.filename)}"
    (folder / filename).write_bytes(blob)
    logger.info("Stored image %s (%d bytes)", filename, len(blob))
    return f"{settings.image_url_prefix}/{filename}"


def image_file_path(url: str, settings: Settings) -> Path:
    # Only the basename is trusted; stored URLs never point outside IMAGE_PATH.
    return Path(settings.image_path) / Path(url).name


def delete_images(urls: Iterable[Optional[str]], settings: Settings) -> int:
    """
    Best-effort removal of stored images. Failures are logged, never raised.
    Returns how many files were removed.
    """
    removed = 0
    for url in urls:
        if not url:
            continue
        path = image_file_path(url, settings)
        try:
            path.unlink()
            removed += 1
            logger.info("Image file deleted successfully %s", path)
        except OSError as e:
            logger.warning("Failed to delete the image file %s: %s", path, e)
    return removed
