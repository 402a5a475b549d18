"""
Interest-map component detection for UI elements (icons, buttons, cards).

Pipeline: local-variance interest map, dilate to connect nearby strokes,
collect components, drop those that span nearly the whole image or are mostly
empty, merge, then drop regions that look like plain text.
"""

from typing import List, Sequence

import numpy as np

from ..raster.buffer import RasterBuffer
from ..regions.model import BoundingBox
from ..regions.merge import merge_boxes
from ..logging import get_logger
from .components import content_ratio, mask_components
from .mask import dilate_mask, interest_map

logger = get_logger(__name__)

DILATION_RADIUS = 3

# Components covering more than this fraction of either image dimension are layout, not UI
MAX_SPAN_FRACTION = 0.9

# Minimum share of interesting pixels inside a component's box
MIN_CONTENT_RATIO = 0.1

# Text heuristic: few distinct colors and mostly very dark or very light samples
TEXT_SAMPLE_STRIDE = 2
TEXT_COLOR_LEVELS = 32
TEXT_MAX_COLORS = 5
TEXT_DARK_MAX = 50
TEXT_LIGHT_MIN = 220
TEXT_EXTREME_FRACTION = 0.4


def is_likely_text_only(raster: RasterBuffer, box: BoundingBox) -> bool:
    """
    Near-monochrome regions dominated by very dark or very light pixels are
    treated as plain text and skipped by component detection.
    """
    window = raster.rgb_int16()[box.y:box.bottom:TEXT_SAMPLE_STRIDE, box.x:box.right:TEXT_SAMPLE_STRIDE]
    samples = window.reshape(-1, 3)
    if samples.shape[0] == 0:
        return False

    levels = samples // TEXT_COLOR_LEVELS
    distinct = np.unique(levels, axis=0).shape[0]

    brightness = samples.sum(axis=1) // 3
    extreme = np.count_nonzero((brightness < TEXT_DARK_MAX) | (brightness > TEXT_LIGHT_MIN))

    return distinct <= TEXT_MAX_COLORS and extreme > samples.shape[0] * TEXT_EXTREME_FRACTION


def detect_ui_components(raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[BoundingBox]:
    """
    Unpadded boxes of likely UI components.

    Args:
        raster: Source pixels
        background: Estimated background color
        min_size: Minimum width and height in pixels

    Returns:
        Merged component boxes with text-only regions removed
    """
    interest = interest_map(raster, background)
    dilated = dilate_mask(interest, DILATION_RADIUS)

    max_width = raster.width * MAX_SPAN_FRACTION
    max_height = raster.height * MAX_SPAN_FRACTION

    candidates = []
    for box in mask_components(dilated):
        if box.width < min_size or box.height < min_size:
            continue
        if box.width > max_width or box.height > max_height:
            continue
        if content_ratio(interest, box) <= MIN_CONTENT_RATIO:
            continue
        candidates.append(box)

    merged = merge_boxes(candidates)
    components = [box for box in merged if not is_likely_text_only(raster, box)]

    logger.debug(
        f"UI components: {len(candidates)} candidates, {len(merged)} after merge, "
        f"{len(components)} after text filter"
    )
    return components
