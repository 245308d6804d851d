from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml


@dataclass
class PaintParams:
    max_speed: float = 1.0
    perception_radius: int = 5
    boundary_margin: float = 60.0
    boundary_force_factor: float = 0.8
    noise_scale: float = 100.0
    noise_influence: float = 0.1
    # Wander is multiplied by this when attraction is weaker than min_force
    wander_boost: float = 5.0
    min_force: float = 0.01
    noise_turns: float = 1.0
    attraction_falloff: bool = False
    damping: float = 0.9999
    ink_drop_probability: float = 0.01
    ink_drop_alpha: float = 150 / 255
    ink_drop_force: float = 0.1
    ink_drop_max_extra_width: float = 5.0
    stroke_alpha: float = 50 / 255
    stroke_width: float = 1.0
    max_count: int = 100
    dark_threshold: float = 220.0
    respawn_attempts: int = 100
    # "canvas" samples the visible canvas, "offset" keeps the [w/2, 1.5w) range
    respawn_region: str = "canvas"
    fade_amount: float = 0.0


@dataclass
class SessionConfig:
    batch_size: int = 800
    frame_interval: float = 1.0 / 60.0
    agent_count: int = 1
    max_width: int = 300
    max_height: int = 300
    allow_upscale: bool = True
    show_source: bool = True
    z_step: float = 0.0
    # Worked frames before the session pauses itself; "width" uses canvas width + 1
    frame_budget: Optional[Union[int, str]] = None
    noise: str = "sine"
    seed: int = 42
    log_every_frames: int = 60


@dataclass
class SketchConfig:
    blur_radius: int = 10


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    max_bytes: int = 1_048_576
    backup_count: int = 3


@dataclass
class ServerConfig:
    broadcast_interval: int = 2


@dataclass
class AppConfig:
    paint: PaintParams = field(default_factory=PaintParams)
    session: SessionConfig = field(default_factory=SessionConfig)
    sketch: SketchConfig = field(default_factory=SketchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text())
        return load_config(data or {})


_RESPAWN_REGIONS = {"canvas", "offset"}


def load_config(raw: dict) -> AppConfig:
    def _alpha(value: object, default: float) -> float:
        # Integers are 0-255 canvas alphas; floats up to 1.0 are fractions
        if value is None:
            return default
        if isinstance(value, int) and not isinstance(value, bool):
            return value / 255.0
        value = float(value)
        return value / 255.0 if value > 1.0 else value

    paint_raw = dict(raw.get("paint", {}))
    for key, default in (
        ("ink_drop_alpha", PaintParams.ink_drop_alpha),
        ("stroke_alpha", PaintParams.stroke_alpha),
    ):
        if key in paint_raw:
            paint_raw[key] = _alpha(paint_raw[key], default)
    paint = PaintParams(**paint_raw)
    if paint.respawn_region not in _RESPAWN_REGIONS:
        raise ValueError(f"Unknown respawn region: {paint.respawn_region}")

    session = SessionConfig(**raw.get("session", {}))
    budget = session.frame_budget
    if isinstance(budget, str) and budget != "width":
        raise ValueError(f"Unknown frame budget: {budget}")
    sketch = SketchConfig(**raw.get("sketch", {}))
    logging_config = LoggingConfig(**raw.get("logging", {}))
    server = ServerConfig(**raw.get("server", {}))
    return AppConfig(paint=paint, session=session, sketch=sketch, logging=logging_config, server=server)
