"""Decode generated or uploaded images and place them on the canvas."""

from __future__ import annotations

import base64
import binascii
import io
import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..geometry import Vec
from ..records import ASSET_ID_PREFIX
from ..store import DocumentStore, viewport_page_center
from .commands import LayoutOptions, jitter

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


class ImageDecodeError(ValueError):
    """Raised when an image source cannot be decoded."""


@dataclass
class ImageInfo:
    width: int
    height: int
    mime_type: str
    is_animated: bool = False


def mime_type_of(data_url: str) -> str:
    if data_url.startswith("data:") and ";" in data_url:
        mime = data_url[len("data:"):data_url.index(";")]
        if mime:
            return mime
    return DEFAULT_MIME_TYPE


def strip_data_url(data_url: str) -> str:
    """Return the base64 payload of a data URL (the input itself if it has no header)."""

    head, sep, payload = data_url.partition(",")
    return payload if sep else head


def probe_image(data_url: str) -> ImageInfo:
    """Decode *data_url* with Pillow and report its pixel size."""

    if not isinstance(data_url, str) or not data_url.startswith("data:"):
        raise ImageDecodeError("only data: URLs can be decoded locally")
    try:
        raw = base64.b64decode(strip_data_url(data_url), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"invalid base64 payload: {exc}") from exc
    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            width, height = img.size
            animated = bool(getattr(img, "is_animated", False))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(f"image failed to decode: {exc}") from exc
    if width <= 0 or height <= 0:
        raise ImageDecodeError("image has no pixels")
    return ImageInfo(width=width, height=height, mime_type=mime_type_of(data_url), is_animated=animated)


def image_frame(
    info: ImageInfo,
    center: Vec,
    position: Optional[Vec],
    options: LayoutOptions,
) -> Tuple[Vec, float, float]:
    """Return ``(top_left, w, h)``; without *position* the image is centered on *center*."""

    w = options.image_width
    h = info.height / info.width * w
    if position is None:
        position = Vec(center.x - w / 2, center.y - h / 2)
    return position, w, h


def add_image(
    store: DocumentStore,
    data_url: str,
    *,
    prompt: Optional[str] = None,
    position: Optional[Vec] = None,
    options: Optional[LayoutOptions] = None,
    rng: Optional[np.random.Generator] = None,
    rotation: Optional[float] = None,
) -> Optional[str]:
    """Create an image asset plus its shape; returns the shape id.

    A source that fails to decode aborts this image only and returns ``None``.
    """

    options = options or LayoutOptions()
    try:
        info = probe_image(data_url)
    except ImageDecodeError as exc:
        logger.warning("Skipping image %r: %s", prompt or "img", exc)
        return None

    if rotation is None:
        rng = rng if rng is not None else options.rng()
        rotation = float(jitter(rng, 1, options.rotation_jitter)[0])
    top_left, w, h = image_frame(info, viewport_page_center(store), position, options)

    asset_id = f"{ASSET_ID_PREFIX}{uuid.uuid4().hex}"
    with store.batch():
        store.create_assets(
            [
                {
                    "id": asset_id,
                    "type": "image",
                    "props": {
                        "name": prompt or "img",
                        "src": data_url,
                        "w": info.width,
                        "h": info.height,
                        "mimeType": info.mime_type,
                        "isAnimated": info.is_animated,
                    },
                    "meta": {},
                }
            ]
        )
        (shape_id,) = store.create_shapes(
            [
                {
                    "type": "image",
                    "x": top_left.x,
                    "y": top_left.y,
                    "rotation": rotation,
                    "props": {"assetId": asset_id, "w": w, "h": h},
                }
            ]
        )
    logger.info("Added image %s (%dx%d px) at (%.1f, %.1f)", shape_id, info.width, info.height, top_left.x, top_left.y)
    return shape_id


__all__ = [
    "DEFAULT_MIME_TYPE",
    "ImageDecodeError",
    "ImageInfo",
    "mime_type_of",
    "strip_data_url",
    "probe_image",
    "image_frame",
    "add_image",
]
