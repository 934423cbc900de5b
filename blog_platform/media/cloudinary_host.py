"""Blog and category images on Cloudinary.

Store the `public_id` returned by an upload and delete by it; parsing the id
back out of a delivery URL is only a fallback for rows that predate it.
"""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from blog_platform.config import Config
from blog_platform.errors import ImageHostError, ValidationError

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/avif")

_PUBLIC_ID_RE = re.compile(r"/image/upload/(?:v\d+/)?(.+?)\.[a-zA-Z0-9]+$")


def _debug(msg: str) -> None:
    print(f"[media] {msg}")


@dataclass(frozen=True)
class UploadedImage:
    secure_url: str
    public_id: str


def is_configured(cfg: Config) -> bool:
    return bool(cfg.CLOUDINARY_CLOUD_NAME and cfg.CLOUDINARY_API_KEY and cfg.CLOUDINARY_API_SECRET)


def _init(cfg: Config) -> None:
    if not is_configured(cfg):
        raise ImageHostError("cloudinary_not_configured")
    cloudinary.config(
        cloud_name=cfg.CLOUDINARY_CLOUD_NAME,
        api_key=cfg.CLOUDINARY_API_KEY,
        api_secret=cfg.CLOUDINARY_API_SECRET,
        secure=True,
    )


def validate_image(cfg: Config, *, data: bytes, content_type: str | None) -> None:
    if not data:
        raise ValidationError("image_empty")
    if len(data) > cfg.MAX_IMAGE_BYTES:
        raise ValidationError("image_too_large")
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise ValidationError("image_type_not_allowed")


def upload_image(cfg: Config, *, data: bytes, content_type: str | None) -> UploadedImage:
    validate_image(cfg, data=data, content_type=content_type)
    _init(cfg)
    try:
        result = cloudinary.uploader.upload(
            io.BytesIO(data),
            folder=cfg.CLOUDINARY_FOLDER,
            resource_type="image",
            overwrite=False,
        )
    except CloudinaryError as e:
        _debug(f"upload failed: {e}")
        raise ImageHostError(f"upload_failed: {e}") from e

    url = result.get("secure_url") or result.get("url")
    public_id = result.get("public_id")
    if not url or not public_id:
        raise ImageHostError("upload_response_incomplete")
    _debug(f"uploaded {public_id}")
    return UploadedImage(secure_url=str(url), public_id=str(public_id))


def delete_image(cfg: Config, public_id: str) -> bool:
    """Destroy an asset. Returns False when the host reports it missing."""
    _init(cfg)
    try:
        result = cloudinary.uploader.destroy(public_id, resource_type="image", invalidate=True)
    except CloudinaryError as e:
        _debug(f"delete failed for {public_id}: {e}")
        raise ImageHostError(f"delete_failed: {e}") from e
    _debug(f"deleted {public_id}: {result.get('result')}")
    return result.get("result") == "ok"


def public_id_from_url(url: str | None) -> Optional[str]:
    m = _PUBLIC_ID_RE.search(url or "")
    return m.group(1) if m else None
