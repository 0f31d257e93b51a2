import logging
import os
import time
import uuid
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional
from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool
from photofeed.core.config import get_settings
from photofeed.core.exceptions import ValidationError


def unique_photo_name() -> str:
    # millisecond timestamp plus a random suffix, always re-encoded as jpeg
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}.jpg"


def transcode_image(data: bytes, destination: Path, max_dimension: int) -> None:
    """Resize ``data`` to fit in ``max_dimension`` and write it to ``destination`` as JPEG."""
    try:
        with Image.open(BytesIO(data)) as source:
            image = ImageOps.exif_transpose(source)
            image = image.convert("RGB")
            image.thumbnail((max_dimension, max_dimension))
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise ValidationError("invalid image") from e

    # write failures are server errors, not bad input
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        image.save(destination, format="JPEG", quality=85)
    except OSError:
        destination.unlink(missing_ok=True)
        raise


class PhotoStorage:
    """
    Files stored under a static root.

    Rows keep paths relative to ``root`` (``posts/<name>.jpg``); ``url_for``
    joins them with the public static url when a response is shaped.
    """

    def __init__(self, root: str, base_url: str = "/static",
                 photo_max_dimension: int = 1080, avatar_max_dimension: int = 400,
                 name_factory: Callable[[], str] = unique_photo_name):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.photo_max_dimension = photo_max_dimension
        self.avatar_max_dimension = avatar_max_dimension
        self.name_factory = name_factory

    def absolute(self, relative: str) -> Path:
        return self.root / relative

    def url_for(self, relative: Optional[str]) -> Optional[str]:
        if not relative:
            return None
        return f"{self.base_url}/{relative}"

    async def save(self, data: bytes, folder: str, max_dimension: int) -> str:
        relative = f"{folder}/{self.name_factory()}"
        # the write has finished once this returns, rows may reference it
        await run_in_threadpool(transcode_image, data, self.absolute(relative), max_dimension)
        return relative

    async def save_many(self, uploads: list, folder: str, max_dimension: int) -> list:
        saved = []
        try:
            for data in uploads:
                saved.append(await self.save(data, folder, max_dimension))
        except Exception:
            self.remove_many(saved)
            raise
        return saved

    def remove(self, relative: str) -> bool:
        try:
            os.remove(self.absolute(relative))
            return True
        except OSError as e:
            logging.error(f"Failed to delete file {relative}: {str(e)}")
            return False

    def remove_many(self, relatives) -> None:
        for relative in relatives:
            self.remove(relative)


def get_storage() -> PhotoStorage:
    settings = get_settings()
    return PhotoStorage(
        settings.static_root,
        settings.static_url,
        photo_max_dimension=settings.photo_max_dimension,
        avatar_max_dimension=settings.avatar_max_dimension,
    )
