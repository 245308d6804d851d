from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import pygame

from ...rng import DeterministicRng
from ...vector import Vector2D
from ..core.agent import Agent
from ..utils.math2d import _clamp_value
from . import lifecycle

if TYPE_CHECKING:
    from ..core.world import SketchWorld

INK = (0, 0, 0)


@dataclass(frozen=True, slots=True)
class StrokeStyle:
    alpha: float
    width: float


@dataclass(frozen=True, slots=True)
class StrokeResult:
    drawn: bool
    ink_drop: bool = False
    respawned: bool = False
    style: Optional[StrokeStyle] = None


class StrokeRenderer:
    """Draws each agent's last move as a translucent ink segment.

    Every segment goes through its own stamp surface, so a thick ink drop
    never changes how the next stroke is drawn.
    """

    def __init__(self, surface: pygame.Surface, rng: DeterministicRng):
        self._surface = surface
        self._rng = rng

    @property
    def surface(self) -> pygame.Surface:
        return self._surface

    def render(self, world: SketchWorld, agent: Agent) -> StrokeResult:
        params = agent.params
        agent.stroke_count += 1
        if agent.stroke_count > params.max_count:
            lifecycle.respawn(world, agent)
            return StrokeResult(drawn=False, respawned=True)

        style = StrokeStyle(alpha=params.stroke_alpha, width=params.stroke_width)
        ink_drop = False
        if agent.force.magnitude() > params.ink_drop_force and self._rng.next_float() < params.ink_drop_probability:
            style = StrokeStyle(
                alpha=params.ink_drop_alpha,
                width=params.stroke_width + self._rng.next_float() * params.ink_drop_max_extra_width,
            )
            ink_drop = True
            agent.ink_drops += 1

        self.draw_segment(agent.previous_position, agent.position, style)
        if params.fade_amount > 0:
            world.field.lighten_segment(
                agent.previous_position.x,
                agent.previous_position.y,
                agent.position.x,
                agent.position.y,
                params.fade_amount,
            )
        return StrokeResult(drawn=True, ink_drop=ink_drop, style=style)

    def draw_segment(self, start: Vector2D, end: Vector2D, style: StrokeStyle) -> None:
        line_width = max(1, int(round(style.width)))
        alpha = int(round(_clamp_value(style.alpha, 0.0, 1.0) * 255))
        if alpha == 0:
            return
        pad = line_width + 1
        left = math.floor(min(start.x, end.x)) - pad
        top = math.floor(min(start.y, end.y)) - pad
        stamp_width = math.ceil(max(start.x, end.x)) - left + pad + 1
        stamp_height = math.ceil(max(start.y, end.y)) - top + pad + 1
        stamp = pygame.Surface((stamp_width, stamp_height), pygame.SRCALPHA, 32)
        pygame.draw.line(
            stamp,
            (*INK, alpha),
            (start.x - left, start.y - top),
            (end.x - left, end.y - top),
            line_width,
        )
        self._surface.blit(stamp, (left, top))
