import os
import sys
from pathlib import Path

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import pygame
import pytest

ROOT = Path(__file__).resolve().parents[2]
src_root = ROOT / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))


class ScriptedRng:
    """Stands in for DeterministicRng, replaying ``values`` in a loop."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def next_float(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def make_rgba(width: int, height: int, value: int = 255) -> np.ndarray:
    rgba = np.full((height, width, 4), value, dtype=np.uint8)
    rgba[..., 3] = 255
    return rgba


def make_surface(width: int, height: int, color=(255, 255, 255), dark_rect=None) -> pygame.Surface:
    surface = pygame.Surface((width, height), pygame.SRCALPHA, 32)
    surface.fill((*color, 255))
    if dark_rect is not None:
        surface.fill((0, 0, 0, 255), pygame.Rect(*dark_rect))
    return surface


@pytest.fixture
def scripted_rng():
    return ScriptedRng


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run long simulation tests that draw many full frames",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "slow: marks long-running simulation tests (use --run-slow)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow"):
        return

    skip_marker = pytest.mark.skip(
        reason="Long-running simulation test (use --run-slow)",
    )

    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_marker)


def make_world(rgba: np.ndarray, rng=None, agent_count: int = 1, **paint):
    from sketchbook.config import AppConfig
    from sketchbook.sim.core.pixels import PixelBuffer
    from sketchbook.sim.core.world import SketchWorld

    config = AppConfig()
    config.session.agent_count = agent_count
    for key, value in paint.items():
        setattr(config.paint, key, value)
    height, width = rgba.shape[:2]
    surface = pygame.Surface((width, height), 0, 32)
    surface.fill((255, 255, 255))
    return SketchWorld(config, PixelBuffer.from_rgba(rgba), surface, rng=rng)
