"""
backend/app/services/file_upload.py

Local filesystem storage for uploaded e-books and cover images.

Files land in {upload_dir}/{covers|ebooks}/{timestamp}-{random}.{ext}
and are served by the web tier under {upload_url_prefix}/...
"""

import logging
import secrets
import time
from pathlib import Path

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from ..config import settings
from ..errors import UploadError

logger = logging.getLogger(__name__)

EBOOK_CONTENT_TYPES = {
    "application/pdf": "pdf",
    "application/epub+zip": "epub",
    "application/x-mobipocket-ebook": "mobi",
}
COVER_CONTENT_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

_CHUNK_SIZE = 1024 * 1024

# Covers wider than this are downscaled in place
COVER_MAX_WIDTH = 800


def _unique_filename(ext: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"


def _shrink_cover(path: Path) -> None:
    """Reject non-images; downscale wide covers keeping the aspect ratio."""
    try:
        with Image.open(path) as src:
            src.load()
            if src.width <= COVER_MAX_WIDTH:
                return
            fmt = src.format
            ratio = COVER_MAX_WIDTH / src.width
            img = src.resize((COVER_MAX_WIDTH, int(src.height * ratio)), Image.Resampling.LANCZOS)
    except (UnidentifiedImageError, OSError) as e:
        raise UploadError(f"Invalid image file: {e}") from None

    img.save(path, fmt)
    logger.info("Cover downscaled to %sx%s: %s", img.width, img.height, path.name)


def save_upload(
    file: UploadFile,
    allowed_types: dict[str, str],
    max_size: int | None = None,
    base_dir: Path | None = None,
) -> dict:
    """
    Validate and store an uploaded file.

    Raises:
        UploadError: disallowed content type or file larger than max_size.

    Returns:
        {"url", "filename", "size", "type", "extension"}
    """
    max_size = max_size or settings.max_upload_bytes
    base_dir = base_dir or settings.resolved_upload_dir

    content_type = file.content_type or ""
    if content_type not in allowed_types:
        raise UploadError(
            f"File type not allowed. Allowed: {', '.join(allowed_types)}"
        )

    subdir = "covers" if content_type.startswith("image/") else "ebooks"
    target_dir = base_dir / subdir
    target_dir.mkdir(parents=True, exist_ok=True)

    filename = _unique_filename(allowed_types[content_type])
    target = target_dir / filename

    size = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = file.file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise UploadError(
                        f"File too large. Maximum: {max_size // (1024 * 1024)}MB"
                    )
                out.write(chunk)
    except UploadError:
        target.unlink(missing_ok=True)
        raise

    if subdir == "covers":
        try:
            _shrink_cover(target)
        except UploadError:
            target.unlink(missing_ok=True)
            raise
        size = target.stat().st_size

    logger.info("Upload stored: %s (%s bytes)", target, size)

    return {
        "url": f"{settings.upload_url_prefix}/{subdir}/{filename}",
        "filename": filename,
        "size": size,
        "type": content_type,
        "extension": allowed_types[content_type],
    }


def delete_upload(url: str | None, base_dir: Path | None = None) -> None:
    """Remove a stored file by its public URL. Missing files are ignored."""
    if not url or not url.startswith(settings.upload_url_prefix + "/"):
        return
    base_dir = base_dir or settings.resolved_upload_dir
    relative = url[len(settings.upload_url_prefix) + 1:]
    path = (base_dir / relative).resolve()
    if base_dir.resolve() not in path.parents:
        logger.warning("Refusing to delete outside upload dir: %s", url)
        return
    path.unlink(missing_ok=True)
