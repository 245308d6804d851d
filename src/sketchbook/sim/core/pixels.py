from __future__ import annotations

import math
from typing import List

import numpy as np
import pygame

from ...imaging.decode import surface_to_rgba

WHITE = 255.0


class PixelBuffer:
    """Read-only RGBA grid the agents sample brightness from."""

    __slots__ = ("_width", "_height", "_rgba")

    def __init__(self, width: int, height: int, rgba: np.ndarray):
        if rgba.shape != (height, width, 4):
            raise ValueError(f"expected RGBA array of shape {(height, width, 4)}, got {rgba.shape}")
        data = np.array(rgba, dtype=np.uint8, copy=True)
        data.setflags(write=False)
        self._width = width
        self._height = height
        self._rgba = data

    @classmethod
    def from_rgba(cls, rgba: np.ndarray) -> "PixelBuffer":
        height, width = rgba.shape[:2]
        return cls(width, height, rgba)

    @classmethod
    def from_surface(cls, surface: pygame.Surface) -> "PixelBuffer":
        return cls.from_rgba(surface_to_rgba(surface))

    @classmethod
    def filled(cls, width: int, height: int, rgb: tuple[int, int, int] = (255, 255, 255)) -> "PixelBuffer":
        rgba = np.empty((height, width, 4), dtype=np.uint8)
        rgba[..., :3] = rgb
        rgba[..., 3] = 255
        return cls(width, height, rgba)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def rgba(self) -> np.ndarray:
        return self._rgba

    def in_bounds(self, x: float, y: float) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def brightness(self, x: float, y: float) -> float:
        if not self.in_bounds(x, y):
            return WHITE
        r, g, b = self._rgba[math.floor(y), math.floor(x), :3]
        return (int(r) + int(g) + int(b)) / 3

    def brightness_map(self) -> np.ndarray:
        return self._rgba[..., :3].astype(np.float64).sum(axis=2) / 3


def brightness(buffer: PixelBuffer, x: float, y: float) -> float:
    return buffer.brightness(x, y)


class BrightnessField:
    """Per-session brightness grid used inside the simulation loop.

    Holds plain Python rows for fast scalar reads and can be lightened along
    strokes, while the source ``PixelBuffer`` stays untouched.
    """

    def __init__(self, buffer: PixelBuffer):
        self._buffer = buffer
        self.width = buffer.width
        self.height = buffer.height
        self._rows: List[List[float]] = buffer.brightness_map().tolist()

    @property
    def buffer(self) -> PixelBuffer:
        return self._buffer

    def reset(self) -> None:
        self._rows = self._buffer.brightness_map().tolist()

    def brightness(self, x: float, y: float) -> float:
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return WHITE
        return self._rows[int(y)][int(x)]

    def lighten_segment(self, x1: float, y1: float, x2: float, y2: float, amount: float) -> int:
        """Brighten the cells under a segment, returning how many were touched."""
        if amount <= 0:
            return 0
        steps = max(math.floor(abs(x1 - x2)), math.floor(abs(y1 - y2)), 1)
        touched = 0
        for i in range(steps):
            x = math.floor(x1 + (x2 - x1) * i / steps)
            y = math.floor(y1 + (y2 - y1) * i / steps)
            if 0 <= x < self.width and 0 <= y < self.height:
                row = self._rows[y]
                row[x] = min(WHITE, row[x] + amount)
                touched += 1
        return touched
