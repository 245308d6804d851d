from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class AgentSnapshot:
    id: int
    position: Tuple[float, float]
    previous_position: Tuple[float, float]
    velocity: Tuple[float, float]
    force: Tuple[float, float]
    stroke_count: int
    respawns: int
    ink_drops: int


@dataclass(frozen=True, slots=True)
class CanvasGeometry:
    width: int
    height: int
    scale: float
    padding_x: float
    padding_y: float
    max_width: float
    max_height: float


@dataclass(frozen=True, slots=True)
class SessionStatus:
    state: str
    frames: int
    ticks: int
    geometry: Optional[CanvasGeometry]
    agents: Tuple[AgentSnapshot, ...]
    error: Optional[str] = None
