from __future__ import annotations

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Optional

from ..config import AppConfig
from ..imaging.decode import decode_image, encode_png
from ..imaging.sketch import sketchify_surface
from ..logging_setup import setup_logging
from ..sim.core.session import SessionState, SketchSession
from ..sim.types.metrics import FrameMetrics

logger = logging.getLogger(__name__)

_HEADER = ["frame", "ticks", "strokes", "respawns", "ink_drops", "frame_ms"]


def _format_row(metrics: FrameMetrics, frame_ms: float) -> list[object]:
    return [
        metrics.frame,
        metrics.ticks,
        metrics.strokes,
        metrics.respawns,
        metrics.ink_drops,
        f"{frame_ms:.3f}",
    ]


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0}
    return {
        "min": float(min(values)),
        "max": float(max(values)),
        "avg": float(sum(values) / len(values)),
    }


def _load_config(config_path: Optional[Path], seed: Optional[int]) -> AppConfig:
    config = AppConfig.from_yaml(config_path) if config_path else AppConfig()
    if seed is not None:
        config.session.seed = seed
    return config


def run_sketch(image: Path, output: Path, config_path: Optional[Path] = None) -> None:
    config = _load_config(config_path, None)
    surface = sketchify_surface(decode_image(image), config.sketch.blur_radius)
    Path(output).write_bytes(encode_png(surface))
    logger.info("Wrote sketch of %s to %s", image, output)


def run_headless(
    image: Path,
    frames: int,
    seed: Optional[int] = None,
    output: Optional[Path] = None,
    log_path: Optional[Path] = None,
    summary_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    deterministic_log: bool = False,
) -> SketchSession:
    config = _load_config(config_path, seed)
    session = SketchSession(config)
    session.open(image)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_HEADER)

    frame_ms_series: list[float] = []
    strokes_total = 0
    respawns_total = 0
    ink_drops_total = 0
    worked = 0
    try:
        for _ in range(frames):
            metrics = session.on_frame()
            if metrics is None:
                if session.state is SessionState.PAUSED:
                    logger.info("Session paused after %d frames; stopping early", worked)
                    break
                continue
            worked += 1
            frame_ms = 0.0 if deterministic_log else metrics.frame_duration_ms
            frame_ms_series.append(frame_ms)
            strokes_total += metrics.strokes
            respawns_total += metrics.respawns
            ink_drops_total += metrics.ink_drops
            if writer:
                writer.writerow(_format_row(metrics, frame_ms))
    finally:
        if csv_file:
            csv_file.close()

    if output and session.canvas is not None:
        Path(output).write_bytes(encode_png(session.canvas))
        logger.info("Wrote canvas to %s", output)

    if summary_path:
        status = session.status()
        summary = {
            "frames": worked,
            "seed": config.session.seed,
            "batch_size": config.session.batch_size,
            "agents": config.session.agent_count,
            "ticks": status.ticks,
            "canvas": [status.geometry.width, status.geometry.height] if status.geometry else None,
            "strokes": strokes_total,
            "respawns": respawns_total,
            "ink_drops": ink_drops_total,
            "frame_ms": _summary_stats(frame_ms_series),
            "deterministic_log": deterministic_log,
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return session


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless pencil-sketch simulation")
    parser.add_argument("image", type=Path, help="Source image to draw from")
    parser.add_argument("--frames", type=int, default=120)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--output", type=Path, default=None, help="PNG file to write the canvas to")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-frame metrics")
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (frame_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument(
        "--sketch",
        action="store_true",
        help="Run the one-shot pencil filter instead of the simulation (needs --output).",
    )
    args = parser.parse_args()

    config = _load_config(args.config, args.seed)
    setup_logging(config.logging)

    if args.sketch:
        if args.output is None:
            parser.error("--sketch needs --output")
        run_sketch(args.image, args.output, args.config)
        return
    session = run_headless(
        args.image,
        args.frames,
        seed=args.seed,
        output=args.output,
        log_path=args.log,
        summary_path=args.summary,
        config_path=args.config,
        deterministic_log=args.deterministic_log,
    )
    session.close()


if __name__ == "__main__":
    main()
