"""
In-memory RGBA pixel grid and color primitives.

Every detector reads pixels through a RasterBuffer. The backing array is marked
read-only so concurrent detectors can share one buffer safely.
"""

import math
from functools import cached_property
from typing import List, Sequence, Tuple, Union

import numpy as np

Color = Union[Tuple[int, int, int], Tuple[int, int, int, int]]


def colors_similar(a: Sequence[int], b: Sequence[int], tolerance: int) -> bool:
    """Max per-channel RGB difference is within tolerance (alpha ignored)."""
    return (
        abs(int(a[0]) - int(b[0])) <= tolerance
        and abs(int(a[1]) - int(b[1])) <= tolerance
        and abs(int(a[2]) - int(b[2])) <= tolerance
    )


def color_distance(a: Sequence[int], b: Sequence[int]) -> float:
    """Euclidean RGB distance (alpha ignored)."""
    dr = int(a[0]) - int(b[0])
    dg = int(a[1]) - int(b[1])
    db = int(a[2]) - int(b[2])
    return math.sqrt(dr * dr + dg * dg + db * db)


def colors_near(a: Sequence[int], b: Sequence[int], tolerance: float) -> bool:
    """Euclidean RGB distance strictly below tolerance."""
    return color_distance(a, b) < tolerance


def luma(color: Sequence[int]) -> int:
    """Unweighted mean of R, G, B."""
    return (int(color[0]) + int(color[1]) + int(color[2])) // 3


class RasterBuffer:
    """Read-only RGBA pixel grid, row-major, shape (height, width, 4)."""

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"Raster must be at least 1x1, got {pixels.shape[1]}x{pixels.shape[0]}")
        data = np.ascontiguousarray(pixels, dtype=np.uint8)
        if data is pixels:
            data = data.copy()
        data.setflags(write=False)
        self._pixels = data

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RasterBuffer":
        """Build from a gray (H, W), RGB (H, W, 3) or RGBA (H, W, 4) array."""
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported array shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=-1)
        return cls(arr.astype(np.uint8))

    @classmethod
    def filled(cls, width: int, height: int, color: Color) -> "RasterBuffer":
        rgba = tuple(color) + ((255,) if len(color) == 3 else ())
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[:, :] = rgba
        return cls(arr)

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        if not self.in_bounds(x, y):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} raster")
        r, g, b, a = self._pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def rgb(self, x: int, y: int) -> Tuple[int, int, int]:
        return self.pixel(x, y)[:3]

    @cached_property
    def _rgb16(self) -> np.ndarray:
        arr = self._pixels[:, :, :3].astype(np.int16)
        arr.setflags(write=False)
        return arr

    def rgb_int16(self) -> np.ndarray:
        """RGB channels as int16, safe for signed differences."""
        return self._rgb16

    @cached_property
    def _luma(self) -> np.ndarray:
        arr = self._rgb16.sum(axis=2, dtype=np.int32) // 3
        arr.setflags(write=False)
        return arr

    def luma(self) -> np.ndarray:
        """(H, W) unweighted luma grid."""
        return self._luma

    @cached_property
    def _flat(self) -> Tuple[List[int], List[int], List[int]]:
        return (
            self._pixels[:, :, 0].ravel().tolist(),
            self._pixels[:, :, 1].ravel().tolist(),
            self._pixels[:, :, 2].ravel().tolist(),
        )

    def flat_rgb(self) -> Tuple[List[int], List[int], List[int]]:
        """Per-channel flat lists indexed by y * width + x, for queue-based fills."""
        return self._flat

    def chebyshev_distance(self, color: Sequence[int]) -> np.ndarray:
        """(H, W) max per-channel difference from color."""
        target = np.array(color[:3], dtype=np.int16)
        return np.abs(self._rgb16 - target).max(axis=2)

    def similar_to(self, color: Sequence[int], tolerance: int) -> np.ndarray:
        """(H, W) boolean grid of colors_similar(pixel, color, tolerance)."""
        return self.chebyshev_distance(color) <= tolerance

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height})"
