from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple, Union

import pygame

from ...config import AppConfig
from ...errors import DecodeError, DegenerateGeometryError, SessionStateError
from ...imaging.decode import FitResult, ImageSource, decode_image, fit_image
from ...rng import DeterministicRng
from ..types.metrics import FrameMetrics
from ..types.snapshot import CanvasGeometry, SessionStatus
from .pixels import PixelBuffer
from .world import SketchWorld

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[int, int], pygame.Surface]


class SessionState(str, Enum):
    IDLE = "Idle"
    LOADING = "Loading"
    RUNNING = "Running"
    PAUSED = "Paused"
    CLOSED = "Closed"
    ERROR = "Error"


@dataclass(frozen=True, slots=True)
class SessionEvent:
    kind: str
    state: SessionState
    detail: Any = None


Listener = Callable[[SessionEvent], None]


def _default_surface(width: int, height: int) -> pygame.Surface:
    return pygame.Surface((width, height), 0, 32)


def _resolve_budget(budget: Union[int, str, None], canvas_width: int) -> Optional[int]:
    # "width" stops once the frame count passes the canvas width
    if budget == "width":
        return canvas_width + 1
    return budget


class SketchSession:
    """Drives one image through the paint simulation.

    ``Idle -> Loading -> Running <-> Paused -> Closed``; a failed decode ends
    in ``Error``. The host calls ``on_frame`` once per display refresh (or
    lets ``start`` run its own asyncio frame loop). Pausing keeps the frame
    loop alive and only skips the work; closing cancels it.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        rng: Optional[DeterministicRng] = None,
        surface_factory: Optional[SurfaceFactory] = None,
    ):
        self.config = config if config is not None else AppConfig()
        self._rng = rng
        self._surface_factory = surface_factory or _default_surface
        self._state = SessionState.IDLE
        self._listeners: List[Listener] = []
        self._world: Optional[SketchWorld] = None
        self._canvas: Optional[pygame.Surface] = None
        self._fit: Optional[FitResult] = None
        self._error: Optional[BaseException] = None
        self._frames = 0
        self._worked_frames = 0
        self._last_metrics: Optional[FrameMetrics] = None
        self._frame_budget: Optional[int] = None
        self._decode_task: Optional[asyncio.Task] = None
        self._frame_task: Optional[asyncio.Task] = None

    # -- observation -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def world(self) -> Optional[SketchWorld]:
        return self._world

    @property
    def canvas(self) -> Optional[pygame.Surface]:
        return self._canvas

    @property
    def fit(self) -> Optional[FitResult]:
        return self._fit

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def frames(self) -> int:
        return self._frames

    @property
    def last_metrics(self) -> Optional[FrameMetrics]:
        return self._last_metrics

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def status(self) -> SessionStatus:
        geometry = None
        if self._fit is not None:
            fit = self._fit
            geometry = CanvasGeometry(
                width=fit.width,
                height=fit.height,
                scale=fit.scale,
                padding_x=fit.padding_x,
                padding_y=fit.padding_y,
                max_width=fit.max_width,
                max_height=fit.max_height,
            )
        return SessionStatus(
            state=self._state.value,
            frames=self._frames,
            ticks=self._world.ticks if self._world is not None else 0,
            geometry=geometry,
            agents=self._world.snapshot() if self._world is not None else (),
            error=str(self._error) if self._error is not None else None,
        )

    # -- transitions -------------------------------------------------------

    def _emit(self, kind: str, detail: Any = None) -> None:
        event = SessionEvent(kind=kind, state=self._state, detail=detail)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %s event", kind)

    def _transition(self, state: SessionState, kind: str = "state", detail: Any = None) -> None:
        previous = self._state
        self._state = state
        logger.info("Session %s -> %s", previous.value, state.value)
        self._emit(kind, detail)

    def _require(self, *states: SessionState) -> None:
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(f"session is {self._state.value}; expected one of: {allowed}")

    def _resolve_box(self, max_box: Optional[Tuple[float, float]]) -> Tuple[float, float]:
        if max_box is None:
            return (self.config.session.max_width, self.config.session.max_height)
        return max_box

    def _begin_loading(self) -> None:
        self._require(SessionState.IDLE)
        self._transition(SessionState.LOADING)

    def _fail(self, exc: BaseException) -> None:
        self._error = exc
        logger.error("Session failed to load image: %s", exc)
        self._transition(SessionState.ERROR, kind="error", detail=exc)

    def _finish_loading(self, image: pygame.Surface, max_box: Tuple[float, float]) -> None:
        session_config = self.config.session
        image_width, image_height = image.get_size()
        fit = fit_image(
            image_width,
            image_height,
            max_box[0],
            max_box[1],
            allow_upscale=session_config.allow_upscale,
        )
        canvas = self._surface_factory(fit.width, fit.height)
        canvas.fill((255, 255, 255))
        scaled = pygame.transform.smoothscale(image, (fit.width, fit.height))
        # The agents sample the scaled image flattened onto white
        sampled = _default_surface(fit.width, fit.height)
        sampled.fill((255, 255, 255))
        sampled.blit(scaled, (0, 0))
        if session_config.show_source:
            canvas.blit(sampled, (0, 0))

        self._fit = fit
        self._canvas = canvas
        self._frame_budget = _resolve_budget(session_config.frame_budget, fit.width)
        self._world = SketchWorld(self.config, PixelBuffer.from_surface(sampled), canvas, rng=self._rng)
        self._frames = 0
        self._worked_frames = 0
        logger.info(
            "Loaded %dx%d image into %dx%d canvas (scale %.3f)",
            image_width,
            image_height,
            fit.width,
            fit.height,
            fit.scale,
        )
        self._transition(SessionState.RUNNING, detail=fit)

    def open(self, source: ImageSource, max_box: Optional[Tuple[float, float]] = None) -> None:
        """Decode ``source`` synchronously and start running.

        No frame loop is started; the host drives ``on_frame``.
        """
        box = self._resolve_box(max_box)
        self._begin_loading()
        try:
            image = decode_image(source)
            self._finish_loading(image, box)
        except (DecodeError, DegenerateGeometryError) as exc:
            self._fail(exc)
            raise

    async def start(self, source: ImageSource, max_box: Optional[Tuple[float, float]] = None) -> None:
        """Decode ``source`` off the event loop, then run the frame loop."""
        box = self._resolve_box(max_box)
        self._begin_loading()
        self._decode_task = asyncio.create_task(asyncio.to_thread(decode_image, source))
        try:
            image = await self._decode_task
        except asyncio.CancelledError:
            if self._state is SessionState.CLOSED:
                logger.info("Session closed while decoding; dropping image")
                return
            logger.info("Session start cancelled while decoding; closing")
            self.close()
            raise
        except DecodeError as exc:
            self._fail(exc)
            raise
        finally:
            self._decode_task = None
        if self._state is not SessionState.LOADING:
            return
        try:
            self._finish_loading(image, box)
        except DegenerateGeometryError as exc:
            self._fail(exc)
            raise
        self._frame_task = asyncio.create_task(self._frame_loop())
        self._frame_task.add_done_callback(self._on_frame_loop_done)

    async def _frame_loop(self) -> None:
        interval = max(0.0, self.config.session.frame_interval)
        while self._state in (SessionState.RUNNING, SessionState.PAUSED):
            await asyncio.sleep(interval)
            self.on_frame()

    def _on_frame_loop_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Frame loop stopped: %s", exc, exc_info=exc)
        if self._state in (SessionState.RUNNING, SessionState.PAUSED):
            self._error = exc
            self._transition(SessionState.ERROR, kind="error", detail=exc)

    def on_frame(self) -> Optional[FrameMetrics]:
        """One animation-frame callback: a batch of ticks unless paused."""
        if self._state not in (SessionState.RUNNING, SessionState.PAUSED):
            return None
        self._frames += 1
        if self._state is SessionState.PAUSED or self._world is None:
            return None

        session_config = self.config.session
        metrics = self._world.run_batch(session_config.batch_size, frame=self._frames)
        self._last_metrics = metrics
        self._worked_frames += 1
        if session_config.log_every_frames > 0 and self._frames % session_config.log_every_frames == 0:
            logger.debug(
                "Frame %d | ticks=%d strokes=%d respawns=%d ink_drops=%d %.2fms",
                metrics.frame,
                metrics.ticks,
                metrics.strokes,
                metrics.respawns,
                metrics.ink_drops,
                metrics.frame_duration_ms,
            )
        self._emit("frame", metrics)

        budget = self._frame_budget
        if budget is not None and self._worked_frames >= budget:
            logger.info("Frame budget of %d reached; pausing", budget)
            self._transition(SessionState.PAUSED, kind="budget_exhausted", detail=budget)
        return metrics

    def pause(self) -> None:
        self._require(SessionState.RUNNING, SessionState.PAUSED)
        if self._state is SessionState.RUNNING:
            self._transition(SessionState.PAUSED)

    def resume(self) -> None:
        self._require(SessionState.RUNNING, SessionState.PAUSED)
        if self._state is SessionState.PAUSED:
            self._worked_frames = 0
            self._transition(SessionState.RUNNING)

    def toggle(self) -> SessionState:
        if self._state is SessionState.PAUSED:
            self.resume()
        else:
            self.pause()
        return self._state

    def close(self) -> None:
        if self._state is SessionState.CLOSED:
            return
        for task in (self._decode_task, self._frame_task):
            if task is not None and not task.done():
                task.cancel()
        self._decode_task = None
        self._frame_task = None
        self._world = None
        self._canvas = None
        self._transition(SessionState.CLOSED)
