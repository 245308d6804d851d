from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Set

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..config import AppConfig
from ..errors import DecodeError, DegenerateGeometryError, SessionStateError
from ..imaging.decode import encode_data_uri
from ..imaging.sketch import sketchify
from ..logging_setup import setup_logging
from ..sim.core.session import SessionEvent, SessionState, SketchSession

logger = logging.getLogger(__name__)


class SessionController:
    """Owns the current sketch session and fans frames out to websocket clients."""

    def __init__(self, config: AppConfig):
        self.config = config
        self.session = SketchSession(config)
        self.broadcast_interval = max(1, config.server.broadcast_interval)
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()
        self._unsubscribe = self.session.subscribe(self._on_event)

    def _replace_session(self) -> None:
        logger.info("Replacing %s session", self.session.state.value)
        self._unsubscribe()
        self.session.close()
        self.session = SketchSession(self.config)
        self._unsubscribe = self.session.subscribe(self._on_event)

    def _on_event(self, event: SessionEvent) -> None:
        if event.kind == "frame" and self.session.frames % self.broadcast_interval != 0:
            return
        if not self.clients:
            return
        task = asyncio.get_running_loop().create_task(self._broadcast())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def start(self, image: str, max_width: Optional[float], max_height: Optional[float]) -> None:
        async with self._lock:
            if self.session.state is not SessionState.IDLE:
                self._replace_session()
            box = None
            if max_width is not None or max_height is not None:
                # A missing axis falls back to the configured limit
                session_config = self.config.session
                box = (
                    float(max_width if max_width is not None else session_config.max_width),
                    float(max_height if max_height is not None else session_config.max_height),
                )
            await self.session.start(image, box)

    async def pause(self) -> None:
        self.session.pause()

    async def resume(self) -> None:
        self.session.resume()

    async def close(self) -> None:
        self.session.close()

    def status_payload(self) -> dict:
        return asdict(self.session.status())

    def canvas_payload(self) -> dict:
        canvas = self.session.canvas
        if canvas is None:
            return {"state": self.session.state.value, "image": None}
        return {"state": self.session.state.value, "image": encode_data_uri(canvas)}

    async def _broadcast(self) -> None:
        payload = json.dumps({"type": "frame", "status": self.status_payload(), **self.canvas_payload()})
        stale: Set[WebSocket] = set()
        for client in list(self.clients):
            try:
                await client.send_text(payload)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)


app = FastAPI(title="Sketchbook Pencil Simulation")
controller = SessionController(AppConfig())


@app.on_event("startup")
async def _startup() -> None:
    setup_logging(controller.config.logging)


@app.on_event("shutdown")
async def _shutdown() -> None:
    await controller.close()


@app.get("/api/session/status")
async def status() -> JSONResponse:
    return JSONResponse(controller.status_payload())


@app.get("/api/session/canvas")
async def canvas() -> JSONResponse:
    return JSONResponse(controller.canvas_payload())


@app.post("/api/session/start")
async def start_session(payload: dict) -> JSONResponse:
    image = payload.get("image")
    if not isinstance(image, str):
        raise HTTPException(status_code=400, detail="'image' must be a data URI or path string")
    try:
        await controller.start(image, payload.get("max_width"), payload.get("max_height"))
    except (DecodeError, DegenerateGeometryError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return JSONResponse(controller.status_payload())


@app.post("/api/session/pause")
async def pause_session() -> JSONResponse:
    try:
        await controller.pause()
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JSONResponse({"state": controller.session.state.value})


@app.post("/api/session/resume")
async def resume_session() -> JSONResponse:
    try:
        await controller.resume()
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JSONResponse({"state": controller.session.state.value})


@app.post("/api/session/close")
async def close_session() -> JSONResponse:
    await controller.close()
    return JSONResponse({"state": controller.session.state.value})


@app.post("/api/sketchify")
async def sketchify_image(payload: dict) -> JSONResponse:
    image = payload.get("image")
    if not isinstance(image, str):
        raise HTTPException(status_code=400, detail="'image' must be a data URI or path string")
    radius = int(payload.get("radius", controller.config.sketch.blur_radius))
    try:
        result = await sketchify(image, radius)
    except DecodeError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return JSONResponse({"image": result})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    await websocket.send_text(json.dumps({"type": "status", "status": controller.status_payload()}))
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            command = payload.get("type")
            try:
                if command == "pause":
                    await controller.pause()
                elif command == "resume":
                    await controller.resume()
            except SessionStateError as exc:
                await websocket.send_text(json.dumps({"type": "error", "detail": str(exc)}))
    except WebSocketDisconnect:
        controller.clients.discard(websocket)


def main() -> None:
    global controller

    parser = argparse.ArgumentParser(description="Serve the pencil-sketch simulation over HTTP")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    args = parser.parse_args()

    if args.config is not None:
        controller = SessionController(AppConfig.from_yaml(args.config))
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


__all__ = ["app", "controller", "main", "SessionController"]
