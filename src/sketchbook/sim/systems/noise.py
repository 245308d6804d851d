from __future__ import annotations

import math
import random
from typing import Protocol


class NoiseSampler(Protocol):
    def __call__(self, x: float, y: float, z: float) -> float: ...


class SineNoise:
    """Cheap stand-in noise; a pure function of the inputs, in [0, 1]."""

    def __call__(self, x: float, y: float, z: float) -> float:
        return abs(math.sin(x * 0.1 + y * 0.1 + z * 0.1) * 0.5 + 0.5)


class PerlinNoise:
    """3D gradient noise remapped to [0, 1].

    Spatially coherent, unlike ``SineNoise``. The permutation table is shuffled
    from ``seed`` so the field is reproducible per seed.
    """

    def __init__(self, seed: int = 0):
        perm = list(range(256))
        random.Random(seed).shuffle(perm)
        self._p = perm + perm

    @staticmethod
    def _fade(t: float) -> float:
        return t * t * t * (t * (t * 6 - 15) + 10)

    @staticmethod
    def _lerp(a: float, b: float, t: float) -> float:
        return a + t * (b - a)

    @staticmethod
    def _grad(hash_val: int, x: float, y: float, z: float) -> float:
        h = hash_val & 15
        u = x if h < 8 else y
        if h < 4:
            v = y
        elif h in (12, 14):
            v = x
        else:
            v = z
        return (u if h & 1 == 0 else -u) + (v if h & 2 == 0 else -v)

    def raw(self, x: float, y: float, z: float) -> float:
        p = self._p
        xi = math.floor(x)
        yi = math.floor(y)
        zi = math.floor(z)
        X = xi & 255
        Y = yi & 255
        Z = zi & 255
        x -= xi
        y -= yi
        z -= zi
        u = self._fade(x)
        v = self._fade(y)
        w = self._fade(z)

        A = p[X] + Y
        AA = p[A] + Z
        AB = p[A + 1] + Z
        B = p[X + 1] + Y
        BA = p[B] + Z
        BB = p[B + 1] + Z

        lerp = self._lerp
        grad = self._grad
        return lerp(
            lerp(
                lerp(grad(p[AA], x, y, z), grad(p[BA], x - 1, y, z), u),
                lerp(grad(p[AB], x, y - 1, z), grad(p[BB], x - 1, y - 1, z), u),
                v,
            ),
            lerp(
                lerp(grad(p[AA + 1], x, y, z - 1), grad(p[BA + 1], x - 1, y, z - 1), u),
                lerp(grad(p[AB + 1], x, y - 1, z - 1), grad(p[BB + 1], x - 1, y - 1, z - 1), u),
                v,
            ),
            w,
        )

    def __call__(self, x: float, y: float, z: float) -> float:
        return min(1.0, max(0.0, (self.raw(x, y, z) + 1.0) * 0.5))


def make_noise(kind: str, seed: int = 0) -> NoiseSampler:
    key = kind.lower().strip()
    if key == "sine":
        return SineNoise()
    if key == "perlin":
        return PerlinNoise(seed)
    raise ValueError(f"Unknown noise kind: {kind}")
