import dataclasses

import numpy as np
import pygame
import pytest

from conftest import make_rgba, make_world
from sketchbook.config import AppConfig
from sketchbook.rng import DeterministicRng
from sketchbook.sim.core.pixels import PixelBuffer
from sketchbook.sim.core.world import SketchWorld
from sketchbook.sim.systems import steering
from sketchbook.sim.systems.noise import PerlinNoise


def _textured(seed=0, width=90, height=70):
    rgba = np.random.default_rng(seed).integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    rgba[..., 3] = 255
    return rgba


def test_world_rejects_empty_pool():
    config = AppConfig()
    config.session.agent_count = 0
    surface = pygame.Surface((4, 4), 0, 32)
    with pytest.raises(ValueError):
        SketchWorld(config, PixelBuffer.filled(4, 4), surface)


def test_pool_size_and_ids():
    world = make_world(_textured(), rng=DeterministicRng(1), agent_count=3)
    assert [agent.id for agent in world.agents] == [0, 1, 2]
    strokes, respawns, ink_drops = world.step()
    assert strokes + respawns >= 3
    assert world.ticks == 1


def test_same_seed_same_run():
    worlds = [make_world(_textured(4), rng=DeterministicRng(11)) for _ in range(2)]
    for world in worlds:
        world.run_batch(500)
    assert worlds[0].snapshot() == worlds[1].snapshot()
    assert pygame.image.tobytes(worlds[0].surface, "RGB") == pygame.image.tobytes(worlds[1].surface, "RGB")


def test_white_page_recycles_agents_after_their_lifetime():
    world = make_world(make_rgba(300, 300), rng=DeterministicRng(0))
    agent = world.agents[0]
    resets = 0
    previous = agent.stroke_count
    for _ in range(1000):
        world.step()
        if agent.stroke_count < previous:
            resets += 1
        previous = agent.stroke_count
    assert resets >= 1
    assert agent.respawns >= 1000 // (agent.params.max_count + 1)


def test_agents_leave_the_canvas_from_offset_respawns():
    world = make_world(make_rgba(300, 300), rng=DeterministicRng(0), respawn_region="offset")
    agent = world.agents[0]
    exits = 0
    for _ in range(1000):
        if steering.update(world, agent):
            exits += 1
            assert agent.stroke_count == 0
        world.renderer.render(world, agent)
    assert exits >= 1


def test_run_batch_reports_frame_metrics():
    world = make_world(_textured(), rng=DeterministicRng(2))
    metrics = world.run_batch(120, frame=7)
    assert metrics.frame == 7
    assert metrics.ticks == 120
    assert metrics.strokes + metrics.respawns >= 120
    assert metrics.ink_drops <= metrics.strokes
    assert metrics.frame_duration_ms >= 0.0


def test_z_advances_per_step():
    world = make_world(_textured(), rng=DeterministicRng(2))
    world.config.session.z_step = 0.01
    world.run_batch(10)
    assert world.z == pytest.approx(0.1)


def test_snapshot_is_frozen_copy():
    world = make_world(_textured(), rng=DeterministicRng(3))
    world.run_batch(5)
    snap = world.snapshot()
    position = snap[0].position
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap[0].stroke_count = 99  # type: ignore[misc]
    world.run_batch(5)
    assert snap[0].position == position
    assert isinstance(snap[0].position, tuple)


def test_reset_restores_field_and_counters():
    world = make_world(make_rgba(30, 30, value=100), rng=DeterministicRng(3), fade_amount=30.0)
    world.run_batch(200)
    world.reset()
    assert world.ticks == 0
    assert world.z == 0.0
    assert world.agents[0].respawns == 0
    assert world.field.brightness(15, 15) == pytest.approx(100.0)


def test_custom_noise_is_used():
    config = AppConfig()
    surface = pygame.Surface((20, 20), 0, 32)
    noise = PerlinNoise(seed=5)
    world = SketchWorld(config, PixelBuffer.filled(20, 20), surface, rng=DeterministicRng(0), noise=noise)
    assert world.noise is noise
