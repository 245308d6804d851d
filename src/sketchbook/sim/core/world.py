from __future__ import annotations

import logging
from time import perf_counter
from typing import List, Optional, Tuple

import pygame

from ...config import AppConfig
from ...rng import DeterministicRng
from ..systems import lifecycle, steering
from ..systems.noise import NoiseSampler, make_noise
from ..systems.render import StrokeRenderer
from ..types.metrics import FrameMetrics
from ..types.snapshot import AgentSnapshot
from .agent import Agent
from .pixels import BrightnessField, PixelBuffer

logger = logging.getLogger(__name__)


class SketchWorld:
    """The agent pool, the brightness field it reads and the surface it inks."""

    def __init__(
        self,
        config: AppConfig,
        buffer: PixelBuffer,
        surface: pygame.Surface,
        rng: Optional[DeterministicRng] = None,
        noise: Optional[NoiseSampler] = None,
    ):
        if config.session.agent_count < 1:
            raise ValueError(f"agent_count must be >= 1, got {config.session.agent_count}")
        self.config = config
        self.buffer = buffer
        self.field = BrightnessField(buffer)
        self.rng = rng if rng is not None else DeterministicRng(config.session.seed)
        self.noise = noise if noise is not None else make_noise(config.session.noise, config.session.seed)
        self.renderer = StrokeRenderer(surface, self.rng)
        self.z = 0.0
        self.ticks = 0
        self._agents: List[Agent] = [lifecycle.spawn_agent(self, i) for i in range(config.session.agent_count)]
        logger.debug(
            "World ready: %dx%d field, %d agent(s), %s noise",
            self.field.width,
            self.field.height,
            len(self._agents),
            config.session.noise,
        )

    @property
    def agents(self) -> List[Agent]:
        return self._agents

    @property
    def surface(self) -> pygame.Surface:
        return self.renderer.surface

    def reset(self) -> None:
        self.field.reset()
        self.z = 0.0
        self.ticks = 0
        for agent in self._agents:
            lifecycle.respawn(self, agent)
            agent.respawns = 0
            agent.ink_drops = 0

    def step(self) -> Tuple[int, int, int]:
        """Run one update+render for every agent.

        Returns ``(strokes, respawns, ink_drops)`` for this step.
        """
        strokes = 0
        respawns = 0
        ink_drops = 0
        renderer = self.renderer
        for agent in self._agents:
            if steering.update(self, agent):
                respawns += 1
            result = renderer.render(self, agent)
            if result.drawn:
                strokes += 1
            if result.respawned:
                respawns += 1
            if result.ink_drop:
                ink_drops += 1
        self.z += self.config.session.z_step
        self.ticks += 1
        return strokes, respawns, ink_drops

    def run_batch(self, steps: int, frame: int = 0) -> FrameMetrics:
        start = perf_counter()
        strokes = 0
        respawns = 0
        ink_drops = 0
        for _ in range(steps):
            s, r, d = self.step()
            strokes += s
            respawns += r
            ink_drops += d
        return FrameMetrics(
            frame=frame,
            ticks=self.ticks,
            strokes=strokes,
            respawns=respawns,
            ink_drops=ink_drops,
            frame_duration_ms=(perf_counter() - start) * 1000.0,
        )

    def snapshot(self) -> Tuple[AgentSnapshot, ...]:
        return tuple(
            AgentSnapshot(
                id=agent.id,
                position=agent.position.as_tuple(),
                previous_position=agent.previous_position.as_tuple(),
                velocity=agent.velocity.as_tuple(),
                force=agent.force.as_tuple(),
                stroke_count=agent.stroke_count,
                respawns=agent.respawns,
                ink_drops=agent.ink_drops,
            )
            for agent in self._agents
        )
