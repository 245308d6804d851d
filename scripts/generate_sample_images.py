#!/usr/bin/env python3
"""Generate small sample PNGs for trying the sketch simulation."""
from __future__ import annotations

import argparse
import struct
import zlib
from pathlib import Path
from typing import Callable

Pixel = tuple[int, int, int]


def build_png(width: int, height: int, pixel: Callable[[int, int], Pixel]) -> bytes:
    rows = []
    for y in range(height):
        row = bytearray(b"\x00")
        for x in range(width):
            row.extend(pixel(x, y))
        rows.append(bytes(row))
    compressed = zlib.compress(b"".join(rows))

    def chunk(chunk_type: bytes, data: bytes) -> bytes:
        return (
            struct.pack(">I", len(data))
            + chunk_type
            + data
            + struct.pack(">I", zlib.crc32(chunk_type + data) & 0xFFFFFFFF)
        )

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", compressed) + chunk(
        b"IEND", b""
    )


def white(width: int, height: int) -> Callable[[int, int], Pixel]:
    return lambda x, y: (255, 255, 255)


def centred_square(width: int, height: int, side: int = 10) -> Callable[[int, int], Pixel]:
    x0 = width // 2 - side // 2
    y0 = height // 2 - side // 2

    def pixel(x: int, y: int) -> Pixel:
        if x0 <= x < x0 + side and y0 <= y < y0 + side:
            return (0, 0, 0)
        return (255, 255, 255)

    return pixel


def gradient(width: int, height: int) -> Callable[[int, int], Pixel]:
    def pixel(x: int, y: int) -> Pixel:
        value = int(255 * x / max(1, width - 1))
        return (value, value, value)

    return pixel


def write_image(path: Path, data: bytes, overwrite: bool) -> None:
    if path.exists() and not overwrite:
        raise FileExistsError(f"{path} already exists. Use --overwrite to replace.")
    path.write_bytes(data)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate sample source images (PNG).")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("samples"),
        help="Directory to write images into.",
    )
    parser.add_argument("--size", type=int, default=300, help="Width and height in pixels.")
    parser.add_argument(
        "--overwrite", action="store_true", help="Overwrite existing files."
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    size = args.size

    write_image(output_dir / "white.png", build_png(size, size, white(size, size)), args.overwrite)
    write_image(output_dir / "square.png", build_png(size, size, centred_square(size, size)), args.overwrite)
    write_image(output_dir / "gradient.png", build_png(size, size, gradient(size, size)), args.overwrite)

    print(f"Generated sample images in {output_dir}")


if __name__ == "__main__":
    main()
