"""
Pencil-sketch filter.

Four passes over an RGBA uint8 array: grayscale, invert, box blur and a
colour-dodge blend of the blurred negative over the grayscale image. Every
pass stores back into uint8 with round-half-even and clamping, so results
match an 8-bit clamped pixel buffer.
"""
from __future__ import annotations

import asyncio
import logging

import numpy as np
import pygame

from .decode import ImageSource, decode_image, encode_data_uri, rgba_to_surface, surface_to_rgba

logger = logging.getLogger(__name__)

DEFAULT_BLUR_RADIUS = 10


def _store_u8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def to_grayscale(rgba: np.ndarray) -> np.ndarray:
    out = rgba.copy()
    rgb = rgba[..., :3].astype(np.float64)
    luma = _store_u8(0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2])
    out[..., 0] = luma
    out[..., 1] = luma
    out[..., 2] = luma
    return out


def invert(rgba: np.ndarray) -> np.ndarray:
    out = rgba.copy()
    out[..., :3] = 255 - rgba[..., :3]
    return out


def box_blur(rgba: np.ndarray, radius: int = DEFAULT_BLUR_RADIUS) -> np.ndarray:
    """Unweighted box blur of the RGB channels over a (2r+1)^2 window.

    Window cells that fall outside the image are left out of both the sum
    and the count.
    """
    if radius < 0:
        raise ValueError(f"blur radius must be >= 0, got {radius}")
    out = rgba.copy()
    if radius == 0:
        return out
    height, width = rgba.shape[:2]
    table = np.zeros((height + 1, width + 1, 3), dtype=np.float64)
    table[1:, 1:] = rgba[..., :3].astype(np.float64).cumsum(axis=0).cumsum(axis=1)

    ys = np.arange(height)
    xs = np.arange(width)
    y0 = np.clip(ys - radius, 0, height)
    y1 = np.clip(ys + radius + 1, 0, height)
    x0 = np.clip(xs - radius, 0, width)
    x1 = np.clip(xs + radius + 1, 0, width)

    sums = table[y1][:, x1] - table[y0][:, x1] - table[y1][:, x0] + table[y0][:, x0]
    counts = ((y1 - y0)[:, None] * (x1 - x0)[None, :]).astype(np.float64)
    out[..., :3] = _store_u8(sums / counts[..., None])
    return out


def color_dodge(front: np.ndarray, back: np.ndarray) -> np.ndarray:
    """Blend ``front`` over ``back``; alpha is taken from ``front``."""
    if front.shape != back.shape:
        raise ValueError(f"layer shapes differ: {front.shape} vs {back.shape}")
    f = front[..., :3].astype(np.float64)
    b = back[..., :3].astype(np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        dodged = np.minimum(255.0, f * 255.0 / (255.0 - b))
    result = np.empty_like(front)
    result[..., :3] = np.where(b == 255, 255, _store_u8(np.nan_to_num(dodged, nan=255.0, posinf=255.0)))
    result[..., 3] = front[..., 3]
    return result


def pencil_sketch(rgba: np.ndarray, radius: int = DEFAULT_BLUR_RADIUS) -> np.ndarray:
    gray = to_grayscale(rgba)
    blurred = box_blur(invert(gray), radius)
    return color_dodge(blurred, gray)


def sketchify_surface(surface: pygame.Surface, radius: int = DEFAULT_BLUR_RADIUS) -> pygame.Surface:
    return rgba_to_surface(pencil_sketch(surface_to_rgba(surface), radius))


def render_sketch(source: ImageSource, radius: int = DEFAULT_BLUR_RADIUS) -> str:
    """Decode ``source``, run the filter and return a PNG data URI.

    Raises ``DecodeError`` when the source cannot be decoded; nothing is
    produced in that case.
    """
    surface = decode_image(source)
    width, height = surface.get_size()
    logger.info("Sketching %dx%d image (blur radius %d)", width, height, radius)
    return encode_data_uri(sketchify_surface(surface, radius))


async def sketchify(source: ImageSource, radius: int = DEFAULT_BLUR_RADIUS) -> str:
    return await asyncio.to_thread(render_sketch, source, radius)
