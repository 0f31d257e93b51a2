from typing import List, Optional
from fastapi import UploadFile
from photofeed.core.exceptions import ValidationError

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
MAX_PHOTOS_PER_REQUEST = 10


def _is_empty_part(upload: UploadFile) -> bool:
    # browsers send an empty part when a file input is left blank
    return not upload.filename and not upload.size


async def read_image(upload: Optional[UploadFile]) -> Optional[bytes]:
    """Read one upload, refusing anything that is not an image."""
    if upload is None or _is_empty_part(upload):
        return None
    if not (upload.content_type or "").startswith("image/"):
        raise ValidationError("invalid filetype")
    if upload.size is not None and upload.size > MAX_UPLOAD_SIZE:
        raise ValidationError("file too large (max 10MB)")
    data = await upload.read()
    if len(data) > MAX_UPLOAD_SIZE:
        raise ValidationError("file too large (max 10MB)")
    return data


async def read_images(uploads: Optional[List[UploadFile]]) -> List[bytes]:
    uploads = [upload for upload in (uploads or []) if not _is_empty_part(upload)]
    if len(uploads) > MAX_PHOTOS_PER_REQUEST:
        raise ValidationError(f"too many photos (max {MAX_PHOTOS_PER_REQUEST})")
    # validate every part before reading any of them
    for upload in uploads:
        if not (upload.content_type or "").startswith("image/"):
            raise ValidationError("invalid filetype")
    return [await read_image(upload) for upload in uploads]
