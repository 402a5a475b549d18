"""Helpers for building synthetic screenshots in tests."""

import io
import struct
import zlib
from typing import Tuple

import numpy as np
from PIL import Image

from tessera.raster.buffer import RasterBuffer

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
RED = (255, 0, 0)
BLUE = (0, 0, 255)


def blank(width: int, height: int, color: Tuple[int, int, int] = WHITE) -> np.ndarray:
    """(H, W, 3) uint8 canvas filled with color."""
    canvas = np.empty((height, width, 3), dtype=np.uint8)
    canvas[:, :] = color
    return canvas


def fill_rect(canvas: np.ndarray, x: int, y: int, w: int, h: int, color: Tuple[int, int, int]) -> np.ndarray:
    canvas[y:y + h, x:x + w] = color
    return canvas


def outline_rect(canvas: np.ndarray, x: int, y: int, w: int, h: int, color: Tuple[int, int, int]) -> np.ndarray:
    """1px rectangle outline; right and bottom lines sit at x + w - 1 and y + h - 1."""
    canvas[y, x:x + w] = color
    canvas[y + h - 1, x:x + w] = color
    canvas[y:y + h, x] = color
    canvas[y:y + h, x + w - 1] = color
    return canvas


def checker_rect(canvas: np.ndarray, x: int, y: int, w: int, h: int,
                 low: int = 100, high: int = 130) -> np.ndarray:
    """Gray checkerboard patch: moderate local variance, no flat areas."""
    yy, xx = np.mgrid[0:h, 0:w]
    values = np.where((xx + yy) % 2 == 0, low, high).astype(np.uint8)
    canvas[y:y + h, x:x + w] = values[:, :, None]
    return canvas


def raster_of(canvas: np.ndarray) -> RasterBuffer:
    return RasterBuffer.from_array(canvas)


def png_bytes(canvas: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(canvas).save(buffer, format="PNG")
    return buffer.getvalue()


def red_square_png() -> bytes:
    """200x200 white image with a 40x40 red square at (80, 80)."""
    return png_bytes(fill_rect(blank(200, 200), 80, 80, 40, 40, RED))


def _png_chunk(kind: bytes, body: bytes) -> bytes:
    return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", zlib.crc32(kind + body))


def oversized_png_header(width: int = 20000, height: int = 20000) -> bytes:
    """PNG signature, IHDR declaring width x height RGB and IEND; no pixel data."""
    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", header) + _png_chunk(b"IEND", b"")


def gray16_square_png() -> bytes:
    """50x50 16-bit gray PNG: 40000 background, 20x20 square of 1000 at (15, 15)."""
    pixels = np.full((50, 50), 40000, dtype=np.uint16)
    pixels[15:35, 15:35] = 1000
    return png_bytes(pixels)
