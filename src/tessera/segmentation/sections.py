"""Horizontal band detection for stacked page layouts."""

from typing import List, Sequence

import numpy as np

from ..raster.buffer import RasterBuffer, color_distance
from ..regions.model import BoundingBox
from ..logging import get_logger

logger = get_logger(__name__)

# Samples per row
ROW_SAMPLES = 20

# Euclidean distance under which every sample of a row matches its first sample
UNIFORM_ROW_TOLERANCE = 20

# Distance between consecutive uniform rows that marks a color boundary
COLOR_CHANGE_THRESHOLD = 30

# A color boundary only counts after this many uniform rows
MIN_RUN_BEFORE_CHANGE = 2

# Uniform runs longer than this produce a divider at their middle when they end
MIN_GAP_RUN = 5

# Sections shorter than this are dropped, and dividers this close to an image edge
# do not start/end a section of their own
MIN_SECTION_HEIGHT = 20


def uniform_rows(raster: RasterBuffer) -> np.ndarray:
    """(H,) mask of rows whose sampled pixels all lie near the row's first sample."""
    step = max(1, raster.width // ROW_SAMPLES)
    samples = raster.rgb_int16()[:, ::step, :].astype(np.float32)
    deltas = samples - samples[:, :1, :]
    distances = np.sqrt((deltas * deltas).sum(axis=2))
    return (distances < UNIFORM_ROW_TOLERANCE).all(axis=1)


def find_horizontal_dividers(raster: RasterBuffer) -> List[int]:
    """
    Y positions where the page changes: either a uniform row whose color differs
    sharply from the uniform run above it, or the middle of a long uniform run
    (a gap) once content resumes.
    """
    uniform = uniform_rows(raster).tolist()
    dividers: List[int] = []

    # Start row and color of the current uniform run
    run_start = None
    run_color = None

    for y, is_uniform in enumerate(uniform):
        if is_uniform:
            color = raster.rgb(0, y)
            if run_start is None:
                run_start, run_color = y, color
            elif color_distance(color, run_color) > COLOR_CHANGE_THRESHOLD:
                if y - run_start > MIN_RUN_BEFORE_CHANGE:
                    dividers.append((run_start + y) // 2)
                run_start, run_color = y, color
        else:
            if run_start is not None and y - run_start > MIN_GAP_RUN:
                dividers.append((run_start + y) // 2)
            run_start = None

    logger.debug(f"Found {len(dividers)} horizontal dividers in {raster.height} rows")
    return dividers


def section_bounds_from_dividers(dividers: Sequence[int], width: int, height: int) -> List[BoundingBox]:
    """
    Full-width bands between consecutive dividers, with the image's top and
    bottom acting as implicit dividers. Bands of MIN_SECTION_HEIGHT or less are
    dropped; if nothing survives the whole image is one section.
    """
    cuts = sorted(set(dividers))
    if not cuts or cuts[0] > MIN_SECTION_HEIGHT:
        cuts.insert(0, 0)
    if cuts[-1] < height - MIN_SECTION_HEIGHT:
        cuts.append(height)

    sections = []
    for start, end in zip(cuts, cuts[1:]):
        if end - start > MIN_SECTION_HEIGHT:
            sections.append(BoundingBox(0, start, width, end - start, width, height))

    if not sections:
        sections.append(BoundingBox(0, 0, width, height, width, height))
    return sections
