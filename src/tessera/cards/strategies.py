"""
Card region finders.

Each finder looks for one visual cue that marks a card: a solid fill that
differs from the page, a ruled border, or a drop shadow. They share the
RegionFinder interface so the multi-pass detector can run them in order.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..raster.buffer import RasterBuffer, colors_similar
from ..regions.model import BoundingBox, Provenance, RegionCandidate
from ..logging import get_logger

logger = get_logger(__name__)


class RegionFinder:
    """Base class for card finders."""

    name = "base"
    provenance = Provenance.SOLID_COLOR

    # False for finders that are registered but do not detect anything yet
    implemented = True

    def find_boxes(self, raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[BoundingBox]:
        raise NotImplementedError

    def find(self, raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[RegionCandidate]:
        boxes = self.find_boxes(raster, background, min_size)
        logger.debug(f"{self.name} finder: {len(boxes)} regions")
        return [
            RegionCandidate(box=box, provenance=self.provenance, label="card")
            for box in boxes
        ]


@dataclass
class SolidColorRegionFinder(RegionFinder):
    """
    Scan a coarse grid for non-background pixels that start a solid block,
    expand along the seed's row and column, then trim edges that are not
    mostly the same color.
    """

    name = "solid-color"
    provenance = Provenance.SOLID_COLOR

    scan_margin: int = 5
    scan_step: int = 10
    background_tolerance: int = 15
    sample_size: int = 20
    sample_tolerance: int = 20
    sample_fraction: float = 0.8
    expand_tolerance: int = 25
    edge_uniformity: float = 0.7

    def _matches(self, pixels: np.ndarray, color: Tuple[int, int, int], tolerance: int) -> np.ndarray:
        return np.abs(pixels - np.array(color, dtype=np.int16)).max(axis=-1) <= tolerance

    def _is_solid_area(self, rgb: np.ndarray, x: int, y: int, color: Tuple[int, int, int]) -> bool:
        window = rgb[y:y + self.sample_size, x:x + self.sample_size]
        if window.size == 0:
            return False
        return float(self._matches(window, color, self.sample_tolerance).mean()) > self.sample_fraction

    @staticmethod
    def _run_extent(similar: np.ndarray, start: int) -> Tuple[int, int]:
        """Inclusive [lo, hi] of the True run through index start."""
        before = np.flatnonzero(~similar[:start])
        after = np.flatnonzero(~similar[start:])
        lo = int(before[-1]) + 1 if before.size else 0
        hi = start + int(after[0]) - 1 if after.size else similar.shape[0] - 1
        return lo, hi

    def _line_uniform(self, line: np.ndarray, color: Tuple[int, int, int]) -> bool:
        return line.shape[0] > 0 and float(self._matches(line, color, self.expand_tolerance).mean()) >= self.edge_uniformity

    def _expand(self, rgb: np.ndarray, x: int, y: int, color: Tuple[int, int, int]) -> Tuple[int, int, int, int]:
        left, right = self._run_extent(self._matches(rgb[y], color, self.expand_tolerance), x)
        top, bottom = self._run_extent(self._matches(rgb[:, x], color, self.expand_tolerance), y)

        while left < right and not self._line_uniform(rgb[top:bottom + 1, left], color):
            left += 1
        while right > left and not self._line_uniform(rgb[top:bottom + 1, right], color):
            right -= 1
        while top < bottom and not self._line_uniform(rgb[top, left:right + 1], color):
            top += 1
        while bottom > top and not self._line_uniform(rgb[bottom, left:right + 1], color):
            bottom -= 1

        return left, top, right, bottom

    def find_boxes(self, raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[BoundingBox]:
        rgb = raster.rgb_int16()
        width, height = raster.width, raster.height
        visited = np.zeros((height, width), dtype=bool)
        boxes = []

        for y in range(self.scan_margin, height - self.scan_margin, self.scan_step):
            for x in range(self.scan_margin, width - self.scan_margin, self.scan_step):
                if visited[y, x]:
                    continue
                color = raster.rgb(x, y)
                if colors_similar(color, background, self.background_tolerance):
                    continue
                if not self._is_solid_area(rgb, x, y, color):
                    continue

                left, top, right, bottom = self._expand(rgb, x, y, color)
                visited[top:bottom + 1, left:right + 1] = True

                box = BoundingBox.from_edges(left, top, right + 1, bottom + 1, width, height)
                if box.width >= min_size and box.height >= min_size:
                    boxes.append(box)

        return boxes


@dataclass
class BorderedRegionFinder(RegionFinder):
    """
    Find rows and columns where a sizeable share of sampled pixels are
    non-background edges, then emit the rectangles between consecutive lines.
    """

    name = "bordered"
    provenance = Provenance.BORDERED

    samples_per_line: int = 50
    background_tolerance: int = 30
    neighbour_tolerance: int = 20
    line_fraction: float = 0.3

    def _edge_lines(self, rgb: np.ndarray, background: Sequence[int]) -> List[int]:
        """Indices along axis 0 of rgb whose sampled pixels are mostly edges."""
        length = rgb.shape[1]
        samples = rgb[:, ::max(1, length // self.samples_per_line)]
        target = np.array(background[:3], dtype=np.int16)

        off_background = np.abs(samples - target).max(axis=-1) > self.background_tolerance
        step_change = np.abs(samples[1:] - samples[:-1]).max(axis=-1) > self.neighbour_tolerance

        differs = np.zeros(off_background.shape, dtype=bool)
        differs[1:] |= step_change      # differs from the previous line
        differs[:-1] |= step_change     # differs from the next line

        ratio = (off_background & differs).mean(axis=1)
        return np.flatnonzero(ratio >= self.line_fraction).tolist()

    def find_boxes(self, raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[BoundingBox]:
        rgb = raster.rgb_int16()
        rows = self._edge_lines(rgb, background)
        columns = self._edge_lines(rgb.transpose(1, 0, 2), background)

        boxes = []
        for top, bottom in zip(rows, rows[1:]):
            for left, right in zip(columns, columns[1:]):
                if right - left >= min_size and bottom - top >= min_size:
                    boxes.append(BoundingBox.from_edges(left, top, right, bottom, raster.width, raster.height))
        return boxes


class ShadowBoundedRegionFinder(RegionFinder):
    """Drop-shadow cue. Registered in the pass order but not yet detecting."""

    name = "shadow"
    provenance = Provenance.SHADOW
    implemented = False

    def find_boxes(self, raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[BoundingBox]:
        return []
