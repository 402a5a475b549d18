"""
Luma-gradient edge refinement.

A coarse box (typically from an external detector) is snapped to the strongest
nearby edges. Each side is searched only in its own third of the box plus a
padding band outside it, so a refined box can never drift further than that
padding from the original.
"""

from typing import Optional

import numpy as np

from ..raster.buffer import RasterBuffer
from ..regions.model import MIN_BOX_SIDE, BoundingBox
from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_EDGE_THRESHOLD = 30
DEFAULT_SEARCH_PADDING = 10


def find_edge(
    luma: np.ndarray,
    start_x: int,
    end_x: int,
    start_y: int,
    end_y: int,
    horizontal: bool,
    find_first: bool,
    threshold: int,
) -> Optional[int]:
    """
    Locate an edge line inside [start_x, end_x) x [start_y, end_y).

    horizontal=True scans columns for a left/right edge; False scans rows for a
    top/bottom edge. A pixel is an edge pixel when the luma difference of its
    two neighbours across the scan direction exceeds threshold; a line counts
    when more than a quarter of its span are edge pixels. Returns the first
    (find_first) or last qualifying line, or None.
    """
    height, width = luma.shape
    if not horizontal:
        luma = luma.T
        start_x, end_x, start_y, end_y = start_y, end_y, start_x, end_x
        height, width = width, height

    start_y, end_y = max(0, start_y), min(height, end_y)
    lines = np.arange(max(1, start_x), min(width - 1, end_x))
    if lines.size == 0 or end_y <= start_y:
        return None

    band = luma[start_y:end_y].astype(np.int32)
    gradient = np.abs(band[:, lines - 1] - band[:, lines + 1]) > threshold
    counts = gradient.sum(axis=0)

    qualifying = lines[counts > (end_y - start_y) // 4]
    if qualifying.size == 0:
        return None
    return int(qualifying[0] if find_first else qualifying[-1])


def refine_bounds(
    raster: RasterBuffer,
    box: BoundingBox,
    threshold: int = DEFAULT_EDGE_THRESHOLD,
    search_padding: int = DEFAULT_SEARCH_PADDING,
) -> BoundingBox:
    """
    Snap box to nearby luma edges.

    Sides without a qualifying edge keep their original position. The result is
    at least MIN_BOX_SIDE on each side where the image allows it, and never
    extends past the image.
    """
    clamped = box.clamped()
    if clamped is None:
        return box

    luma = raster.luma()
    x, y, w, h = clamped.as_tuple()

    search_x = max(0, x - search_padding)
    search_y = max(0, y - search_padding)
    search_right = min(raster.width, x + w + search_padding)
    search_bottom = min(raster.height, y + h + search_padding)

    left = find_edge(luma, search_x, x + w // 3, search_y, search_bottom, True, True, threshold)
    right = find_edge(luma, x + w * 2 // 3, search_right, search_y, search_bottom, True, False, threshold)
    top = find_edge(luma, search_x, search_right, search_y, y + h // 3, False, True, threshold)
    bottom = find_edge(luma, search_x, search_right, y + h * 2 // 3, search_bottom, False, False, threshold)

    new_x = x if left is None else left
    new_y = y if top is None else top
    new_right = x + w if right is None else right
    new_bottom = y + h if bottom is None else bottom

    refined = BoundingBox(
        new_x,
        new_y,
        max(MIN_BOX_SIDE, new_right - new_x),
        max(MIN_BOX_SIDE, new_bottom - new_y),
        raster.width,
        raster.height,
    ).clamped()

    if refined is None:
        return clamped

    if refined != clamped:
        logger.debug(f"Refined {clamped.as_tuple()} -> {refined.as_tuple()}")
    return refined
