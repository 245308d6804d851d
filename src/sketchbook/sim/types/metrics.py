from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class FrameMetrics:
    frame: int
    ticks: int
    strokes: int
    respawns: int
    ink_drops: int
    frame_duration_ms: float = 0.0
