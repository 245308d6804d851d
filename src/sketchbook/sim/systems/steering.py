from __future__ import annotations

import math
from typing import TYPE_CHECKING

from ..core.agent import Agent
from ..utils.math2d import _clamp_length_xy_f, _perception_offsets
from . import lifecycle

if TYPE_CHECKING:
    from ..core.world import SketchWorld

TWO_PI = 2.0 * math.pi


def attraction(world: SketchWorld, agent: Agent) -> tuple[float, float]:
    """Mean pull toward darker cells in the perception square around the agent."""
    params = agent.params
    field = world.field
    width = field.width
    height = field.height
    px = agent.position.x
    py = agent.position.y
    sum_x = 0.0
    sum_y = 0.0
    count = 0
    falloff = params.attraction_falloff
    for i, j, ux, uy, inv_len in _perception_offsets(params.perception_radius):
        x = px + i
        y = py + j
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        darkness = 1.0 - field.brightness(x, y) / 255.0
        if falloff:
            darkness *= inv_len
        sum_x += ux * darkness
        sum_y += uy * darkness
        count += 1
    if count == 0:
        return 0.0, 0.0
    return sum_x / count, sum_y / count


def wander(world: SketchWorld, agent: Agent, force_magnitude: float) -> tuple[float, float]:
    params = agent.params
    n = world.noise(
        agent.position.x / params.noise_scale,
        agent.position.y / params.noise_scale,
        world.z,
    )
    angle = n * TWO_PI * params.noise_turns
    strength = params.noise_influence
    if force_magnitude < params.min_force:
        strength *= params.wander_boost
    return math.cos(angle) * strength, math.sin(angle) * strength


def boundary_push(world: SketchWorld, agent: Agent) -> tuple[float, float]:
    """Inward push that grows with how deep the agent sits in the margin."""
    params = agent.params
    margin = params.boundary_margin
    if margin <= 0.0:
        return 0.0, 0.0
    width = world.field.width
    height = world.field.height
    x = agent.position.x
    y = agent.position.y
    push_x = 0.0
    push_y = 0.0
    if x < margin:
        push_x = (margin - x) / margin
    if x > width - margin:
        push_x = (x - width) / margin
    if y < margin:
        push_y = (margin - y) / margin
    if y > height - margin:
        push_y = (y - height) / margin
    factor = params.boundary_force_factor
    return push_x * factor, push_y * factor


def is_outside(world: SketchWorld, agent: Agent) -> bool:
    x = agent.position.x
    y = agent.position.y
    return x > world.field.width or x < 0 or y > world.field.height or y < 0


def update(world: SketchWorld, agent: Agent) -> bool:
    """Advance one agent by one tick. Returns True when it had to respawn."""
    params = agent.params
    agent.previous_position.set(agent.position.x, agent.position.y)
    force = agent.force.zero()

    pull_x, pull_y = attraction(world, agent)
    force.x += pull_x
    force.y += pull_y

    wander_x, wander_y = wander(world, agent, force.magnitude())
    force.x += wander_x
    force.y += wander_y

    push_x, push_y = boundary_push(world, agent)
    force.x += push_x
    force.y += push_y

    velocity = agent.velocity
    vx, vy = _clamp_length_xy_f(
        (velocity.x + force.x) * params.damping,
        (velocity.y + force.y) * params.damping,
        params.max_speed,
    )
    velocity.set(vx, vy)
    agent.position.add(velocity)

    if is_outside(world, agent):
        lifecycle.respawn(world, agent)
        return True
    return False
