from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union
from urllib.parse import unquote_to_bytes

import numpy as np
import pygame

from ..errors import DecodeError, DegenerateGeometryError

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path, pygame.Surface]

_MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/webp": "webp",
    "image/x-portable-anymap": "pnm",
}


@dataclass(frozen=True, slots=True)
class FitResult:
    width: int
    height: int
    scale: float
    padding_x: float
    padding_y: float
    max_width: float
    max_height: float


def fit_image(
    image_width: float,
    image_height: float,
    max_width: float,
    max_height: float,
    allow_upscale: bool = True,
) -> FitResult:
    """Scale an image into a box, keeping its aspect ratio.

    The returned width/height are what the canvas backing store is sized to;
    the padding only centres that canvas inside the box.
    """
    if image_width <= 0 or image_height <= 0:
        raise DegenerateGeometryError(f"image has no area: {image_width}x{image_height}")
    if max_width <= 0 or max_height <= 0:
        raise DegenerateGeometryError(f"bounding box has no area: {max_width}x{max_height}")
    scale = min(max_width / image_width, max_height / image_height)
    if not allow_upscale:
        scale = min(scale, 1.0)
    width = max(1, round(image_width * scale))
    height = max(1, round(image_height * scale))
    return FitResult(
        width=width,
        height=height,
        scale=scale,
        padding_x=(max_width - width) / 2,
        padding_y=(max_height - height) / 2,
        max_width=max_width,
        max_height=max_height,
    )


def _decode_data_uri(uri: str) -> tuple[bytes, str]:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise DecodeError("data URI has no payload")
    meta = header[len("data:"):].split(";")
    mime = meta[0].lower() if meta and meta[0] else "image/png"
    try:
        if "base64" in meta[1:]:
            raw = base64.b64decode(payload, validate=True)
        else:
            raw = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid data URI payload: {exc}") from exc
    return raw, f"image.{_MIME_EXTENSIONS.get(mime, 'png')}"


def _to_rgba_surface(surface: pygame.Surface) -> pygame.Surface:
    rgba = pygame.Surface(surface.get_size(), pygame.SRCALPHA, 32)
    rgba.blit(surface, (0, 0))
    return rgba


def decode_image(source: ImageSource) -> pygame.Surface:
    """Decode ``source`` into a 32-bit RGBA surface.

    ``source`` may be raw encoded bytes, a ``data:`` URI, a filesystem path or
    an already decoded surface. Every failure is reported as ``DecodeError``.
    """
    if isinstance(source, pygame.Surface):
        return _to_rgba_surface(source)
    try:
        if isinstance(source, (bytes, bytearray)):
            loaded = pygame.image.load(io.BytesIO(bytes(source)))
        elif isinstance(source, str) and source.startswith("data:"):
            raw, namehint = _decode_data_uri(source)
            loaded = pygame.image.load(io.BytesIO(raw), namehint)
        elif isinstance(source, (str, Path)):
            path = Path(source)
            if not path.is_file():
                raise DecodeError(f"image not found: {path}")
            loaded = pygame.image.load(str(path))
        else:
            raise DecodeError(f"unsupported image source: {type(source).__name__}")
    except DecodeError:
        raise
    except (pygame.error, OSError, ValueError) as exc:
        raise DecodeError(f"could not decode image: {exc}") from exc
    width, height = loaded.get_size()
    if width == 0 or height == 0:
        raise DecodeError("decoded image is empty")
    logger.debug("Decoded %dx%d image", width, height)
    return _to_rgba_surface(loaded)


def surface_to_rgba(surface: pygame.Surface) -> np.ndarray:
    """Return a ``(height, width, 4)`` uint8 copy of the surface pixels."""
    width, height = surface.get_size()
    raw = pygame.image.tobytes(surface, "RGBA")
    return np.frombuffer(raw, dtype=np.uint8).reshape(height, width, 4).copy()


def rgba_to_surface(rgba: np.ndarray) -> pygame.Surface:
    height, width = rgba.shape[:2]
    data = np.ascontiguousarray(rgba, dtype=np.uint8).tobytes()
    return pygame.image.frombytes(data, (width, height), "RGBA")


def encode_png(surface: pygame.Surface) -> bytes:
    buffer = io.BytesIO()
    pygame.image.save(surface, buffer, "image.png")
    return buffer.getvalue()


def encode_data_uri(surface: pygame.Surface) -> str:
    payload = base64.b64encode(encode_png(surface)).decode("ascii")
    return f"data:image/png;base64,{payload}"
