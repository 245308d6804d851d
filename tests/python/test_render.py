import pygame
import pytest

from conftest import make_rgba, make_world
from sketchbook.rng import DeterministicRng
from sketchbook.sim.systems.render import StrokeRenderer, StrokeStyle
from sketchbook.vector import Vector2D


def _white_canvas(width=20, height=20):
    canvas = pygame.Surface((width, height), 0, 32)
    canvas.fill((255, 255, 255))
    return canvas


def _place(agent, start, end, force=(0.0, 0.0)):
    agent.previous_position = Vector2D(*start)
    agent.position = Vector2D(*end)
    agent.force.set(*force)


def test_stroke_is_translucent_black():
    world = make_world(make_rgba(20, 20), rng=DeterministicRng(0))
    canvas = _white_canvas()
    renderer = StrokeRenderer(canvas, DeterministicRng(0))
    agent = world.agents[0]
    _place(agent, (5.0, 10.0), (15.0, 10.0))

    result = renderer.render(world, agent)

    assert result.drawn and not result.ink_drop
    r, g, b, _ = canvas.get_at((10, 10))
    assert r == g == b
    # 50/255 alpha over white
    assert 195 <= r <= 215
    assert tuple(canvas.get_at((10, 5)))[:3] == (255, 255, 255)
    assert agent.stroke_count == 1


def test_ink_drop_does_not_leak_into_next_stroke(scripted_rng):
    world = make_world(make_rgba(20, 20), rng=DeterministicRng(0))
    canvas = _white_canvas()
    rng = scripted_rng([0.0, 0.0, 0.5])
    renderer = StrokeRenderer(canvas, rng)
    agent = world.agents[0]

    _place(agent, (2.0, 4.0), (17.0, 4.0), force=(1.0, 0.0))
    heavy = renderer.render(world, agent)
    assert heavy.ink_drop
    assert heavy.style == StrokeStyle(alpha=agent.params.ink_drop_alpha, width=1.0)
    assert agent.ink_drops == 1
    # 150/255 alpha over white
    assert 95 <= canvas.get_at((10, 4)).r <= 115

    _place(agent, (2.0, 14.0), (17.0, 14.0), force=(1.0, 0.0))
    light = renderer.render(world, agent)
    assert not light.ink_drop
    assert light.style == StrokeStyle(alpha=agent.params.stroke_alpha, width=agent.params.stroke_width)
    assert 195 <= canvas.get_at((10, 14)).r <= 215
    assert rng.calls == 3


def test_weak_force_never_rolls_for_ink(scripted_rng):
    world = make_world(make_rgba(20, 20), rng=DeterministicRng(0))
    rng = scripted_rng([0.0])
    renderer = StrokeRenderer(_white_canvas(), rng)
    agent = world.agents[0]
    _place(agent, (2.0, 2.0), (3.0, 3.0), force=(0.05, 0.05))
    assert not renderer.render(world, agent).ink_drop
    assert rng.calls == 0


def test_exceeding_max_count_respawns_without_drawing():
    world = make_world(make_rgba(20, 20), rng=DeterministicRng(0))
    canvas = _white_canvas()
    renderer = StrokeRenderer(canvas, DeterministicRng(0))
    agent = world.agents[0]
    _place(agent, (2.0, 10.0), (18.0, 10.0))
    agent.stroke_count = agent.params.max_count
    before = agent.respawns

    result = renderer.render(world, agent)

    assert not result.drawn and result.respawned
    assert agent.stroke_count == 0
    assert agent.respawns == before + 1
    assert tuple(canvas.get_at((10, 10)))[:3] == (255, 255, 255)


def test_strokes_lighten_the_sampled_field_when_fading():
    world = make_world(make_rgba(20, 20, value=100), rng=DeterministicRng(0), fade_amount=30.0)
    renderer = StrokeRenderer(_white_canvas(), DeterministicRng(0))
    agent = world.agents[0]
    _place(agent, (2.0, 5.0), (8.0, 5.0))

    renderer.render(world, agent)

    assert world.field.brightness(4, 5) == pytest.approx(130.0)
    assert world.field.brightness(4, 6) == pytest.approx(100.0)
    assert world.buffer.brightness(4, 5) == pytest.approx(100.0)


def test_zero_alpha_draws_nothing():
    canvas = _white_canvas()
    renderer = StrokeRenderer(canvas, DeterministicRng(0))
    renderer.draw_segment(Vector2D(1.0, 1.0), Vector2D(18.0, 18.0), StrokeStyle(alpha=0.0, width=3.0))
    assert tuple(canvas.get_at((9, 9)))[:3] == (255, 255, 255)
