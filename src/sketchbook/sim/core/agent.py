from __future__ import annotations

from dataclasses import dataclass, field

from ...config import PaintParams
from ...vector import Vector2D


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2D
    previous_position: Vector2D = field(default_factory=Vector2D)
    velocity: Vector2D = field(default_factory=Vector2D)
    force: Vector2D = field(default_factory=Vector2D)
    params: PaintParams = field(default_factory=PaintParams)
    stroke_count: int = 0
    respawns: int = 0
    ink_drops: int = 0
