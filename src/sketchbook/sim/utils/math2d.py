from __future__ import annotations

import math
from functools import lru_cache
from typing import Tuple

# (dx, dy, unit_x, unit_y, inverse_length)
Offset = Tuple[int, int, float, float, float]


@lru_cache(maxsize=16)
def _perception_offsets(radius: int) -> Tuple[Offset, ...]:
    """Integer offsets of the square neighbourhood of side ``radius``.

    Runs ``-floor(r/2) .. ceil(r/2) - 1`` on both axes and skips the centre
    cell, so a side of 5 yields the 24 cells of a 5x5 block.
    """
    low = -(radius // 2)
    high = math.ceil(radius / 2)
    offsets = []
    for i in range(low, high):
        for j in range(low, high):
            if i == 0 and j == 0:
                continue
            length = math.hypot(i, j)
            offsets.append((i, j, i / length, j / length, 1.0 / length))
    return tuple(offsets)


def _clamp_length_xy_f(x: float, y: float, max_length: float) -> tuple[float, float]:
    if max_length <= 0.0:
        return 0.0, 0.0
    magnitude_sq = x * x + y * y
    if magnitude_sq <= max_length * max_length:
        return x, y
    if magnitude_sq <= 1e-18:
        return 0.0, 0.0
    inv = max_length / math.sqrt(magnitude_sq)
    return x * inv, y * inv


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
