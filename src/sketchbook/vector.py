from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(slots=True)
class Vector2D:
    """Mutable 2D vector.

    The named methods (``add``, ``multiply_scalar``, ``normalize``...) work in
    place and return ``self`` so they can be chained inside the hot loop.
    The operators and ``normalized``/``limited`` always build a new vector and
    are what public code should hand out.
    """

    x: float = 0.0
    y: float = 0.0

    @staticmethod
    def from_angle(angle: float) -> "Vector2D":
        return Vector2D(math.cos(angle), math.sin(angle))

    def copy(self) -> "Vector2D":
        return Vector2D(self.x, self.y)

    def set(self, x: float, y: float) -> "Vector2D":
        self.x = x
        self.y = y
        return self

    def zero(self) -> "Vector2D":
        self.x = 0.0
        self.y = 0.0
        return self

    def add(self, other: "Vector2D") -> "Vector2D":
        self.x += other.x
        self.y += other.y
        return self

    def subtract(self, other: "Vector2D") -> "Vector2D":
        self.x -= other.x
        self.y -= other.y
        return self

    def multiply_scalar(self, n: float) -> "Vector2D":
        self.x *= n
        self.y *= n
        return self

    def divide_scalar(self, n: float) -> "Vector2D":
        self.x /= n
        self.y /= n
        return self

    def normalize(self) -> "Vector2D":
        mag = self.magnitude()
        if mag != 0:
            self.multiply_scalar(1 / mag)
        return self

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def normalized(self) -> "Vector2D":
        return self.copy().normalize()

    def limited(self, max_length: float) -> "Vector2D":
        mag_sq = self.magnitude_squared()
        if mag_sq <= max_length * max_length:
            return self.copy()
        mag = math.sqrt(mag_sq)
        if mag <= 0:
            return Vector2D()
        scale = max_length / mag
        return Vector2D(self.x * scale, self.y * scale)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def __add__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> "Vector2D":
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> "Vector2D":
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> "Vector2D":
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> "Vector2D":
        return Vector2D(-self.x, -self.y)


def add(a: Vector2D, b: Vector2D) -> Vector2D:
    return a + b


def scale(v: Vector2D, s: float) -> Vector2D:
    return v * s


def normalized(v: Vector2D) -> Vector2D:
    return v.normalized()
