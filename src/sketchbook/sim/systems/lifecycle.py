from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...vector import Vector2D
from ..core.agent import Agent

if TYPE_CHECKING:
    from ..core.world import SketchWorld

logger = logging.getLogger(__name__)


def _sample_position(world: SketchWorld, agent: Agent) -> tuple[float, float]:
    width = world.field.width
    height = world.field.height
    rng = world.rng
    if agent.params.respawn_region == "offset":
        return width / 2 + rng.next_float() * width, height / 2 + rng.next_float() * height
    return rng.next_float() * width, rng.next_float() * height


def respawn(world: SketchWorld, agent: Agent) -> bool:
    """Re-seed an agent, preferring a dark spot of the image.

    Returns False when no dark spot turned up within the attempt budget; the
    agent then keeps the last sampled position.
    """
    params = agent.params
    agent.stroke_count = 0
    found = False
    for _ in range(max(1, params.respawn_attempts)):
        x, y = _sample_position(world, agent)
        agent.position.set(x, y)
        if world.field.brightness(x, y) < params.dark_threshold:
            found = True
            break
    if not found:
        logger.debug(
            "Agent %d found no dark spot in %d attempts; spawning at (%.1f, %.1f)",
            agent.id,
            params.respawn_attempts,
            agent.position.x,
            agent.position.y,
        )
    agent.previous_position = agent.position.copy()
    agent.velocity.zero()
    agent.respawns += 1
    return found


def spawn_agent(world: SketchWorld, agent_id: int) -> Agent:
    field = world.field
    agent = Agent(
        id=agent_id,
        position=Vector2D(field.width / 2, field.height / 2),
        params=world.config.paint,
    )
    respawn(world, agent)
    agent.respawns = 0
    return agent
