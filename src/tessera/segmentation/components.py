"""
Connected regions: mask components, color flood fills and bounds tightening.

Whole-mask labelling goes through OpenCV. Seeded fills walk flat buffers
indexed by y * width + x with a deque, so the visited grid can be shared
between successive fills of the same image.
"""

from collections import deque
from typing import List

import cv2
import numpy as np

from ..raster.buffer import RasterBuffer
from ..regions.model import BoundingBox
from ..regions.merge import merge_boxes
from ..logging import get_logger

logger = get_logger(__name__)

# Added to the caller's tolerance when growing a color fill
FILL_TOLERANCE_SLACK = 20

# A single color fill stops accepting pixels after this many
MAX_FILL_PIXELS = 50_000


def new_visited(width: int, height: int) -> bytearray:
    return bytearray(width * height)


def _mask_bytes(mask: np.ndarray) -> bytes:
    return np.ascontiguousarray(mask, dtype=np.uint8).tobytes()


def _fill_mask(flat: bytes, visited: bytearray, width: int, height: int,
               start_x: int, start_y: int) -> BoundingBox:
    """4-connected fill over on-pixels of flat; marks visited, returns the extent."""
    min_x = max_x = start_x
    min_y = max_y = start_y

    start = start_y * width + start_x
    visited[start] = 1
    queue = deque([start])

    while queue:
        idx = queue.popleft()
        y, x = divmod(idx, width)
        if x < min_x:
            min_x = x
        elif x > max_x:
            max_x = x
        if y < min_y:
            min_y = y
        elif y > max_y:
            max_y = y

        if x > 0:
            n = idx - 1
            if flat[n] and not visited[n]:
                visited[n] = 1
                queue.append(n)
        if x < width - 1:
            n = idx + 1
            if flat[n] and not visited[n]:
                visited[n] = 1
                queue.append(n)
        if y > 0:
            n = idx - width
            if flat[n] and not visited[n]:
                visited[n] = 1
                queue.append(n)
        if y < height - 1:
            n = idx + width
            if flat[n] and not visited[n]:
                visited[n] = 1
                queue.append(n)

    return BoundingBox.from_edges(min_x, min_y, max_x + 1, max_y + 1, width, height)


def flood_fill_mask(mask: np.ndarray, visited: bytearray, start_x: int, start_y: int) -> BoundingBox:
    """
    Bounding box of the 4-connected on-component containing (start_x, start_y).

    Every pixel of the component is marked in visited. The start pixel is
    assumed to be on.
    """
    height, width = mask.shape
    return _fill_mask(_mask_bytes(mask), visited, width, height, start_x, start_y)


def mask_components(mask: np.ndarray) -> List[BoundingBox]:
    """Bounding boxes of every 4-connected component, in raster scan order."""
    height, width = mask.shape
    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(
        np.ascontiguousarray(mask, dtype=np.uint8), connectivity=4, ltype=cv2.CV_32S
    )
    if num_labels <= 1:
        return []

    # Order labels by the scan position of their first pixel; label 0 is background
    label_ids, first_index = np.unique(labels.ravel(), return_index=True)
    foreground = label_ids != 0
    order = label_ids[foreground][np.argsort(first_index[foreground], kind="stable")]

    boxes = []
    for label_id in order.tolist():
        x, y, w, h = (int(v) for v in stats[label_id, :4])
        boxes.append(BoundingBox(x, y, w, h, width, height))
    return boxes


def flood_fill_color(
    raster: RasterBuffer,
    visited: bytearray,
    start_x: int,
    start_y: int,
    tolerance: int,
    max_pixels: int = MAX_FILL_PIXELS,
) -> BoundingBox:
    """
    Grow an 8-connected region of pixels similar to the start pixel.

    Neighbours join when every RGB channel is within tolerance +
    FILL_TOLERANCE_SLACK of the start color. Accepted pixels are marked in
    visited; growth stops after max_pixels have been accepted. The returned
    box always contains the start pixel.
    """
    width, height = raster.width, raster.height
    reds, greens, blues = raster.flat_rgb()
    limit = tolerance + FILL_TOLERANCE_SLACK

    start = start_y * width + start_x
    if visited[start]:
        return BoundingBox(start_x, start_y, 1, 1, width, height)

    tr, tg, tb = reds[start], greens[start], blues[start]
    min_x = max_x = start_x
    min_y = max_y = start_y

    visited[start] = 1
    accepted = 1
    queue = deque([start])

    while queue:
        idx = queue.popleft()
        y, x = divmod(idx, width)
        if x < min_x:
            min_x = x
        elif x > max_x:
            max_x = x
        if y < min_y:
            min_y = y
        elif y > max_y:
            max_y = y

        if accepted >= max_pixels:
            continue

        for dy in (-1, 0, 1):
            ny = y + dy
            if ny < 0 or ny >= height:
                continue
            row = ny * width
            for dx in (-1, 0, 1):
                nx = x + dx
                if (dx == 0 and dy == 0) or nx < 0 or nx >= width:
                    continue
                n = row + nx
                if visited[n]:
                    continue
                if (
                    abs(reds[n] - tr) <= limit
                    and abs(greens[n] - tg) <= limit
                    and abs(blues[n] - tb) <= limit
                ):
                    visited[n] = 1
                    accepted += 1
                    queue.append(n)
                    if accepted >= max_pixels:
                        break
            if accepted >= max_pixels:
                break

    if accepted >= max_pixels:
        logger.debug(f"Color fill from ({start_x}, {start_y}) hit the {max_pixels} pixel cap")

    return BoundingBox.from_edges(min_x, min_y, max_x + 1, max_y + 1, width, height)


def tighten_bounds(mask: np.ndarray, box: BoundingBox) -> BoundingBox:
    """Shrink box to the extent of on-pixels inside it; unchanged if it holds none."""
    window = mask[box.y:box.bottom, box.x:box.right]
    rows = np.flatnonzero(window.any(axis=1))
    if rows.size == 0:
        return box
    cols = np.flatnonzero(window.any(axis=0))
    return BoundingBox.from_edges(
        box.x + int(cols[0]),
        box.y + int(rows[0]),
        box.x + int(cols[-1]) + 1,
        box.y + int(rows[-1]) + 1,
        box.image_width,
        box.image_height,
    )


def _big_enough(box: BoundingBox, min_size: int) -> bool:
    return box.width >= min_size and box.height >= min_size


def find_rectangular_regions(mask: np.ndarray, min_size: int, merge: bool = True) -> List[BoundingBox]:
    """
    Components of the foreground mask at least min_size on both sides,
    tightened and (optionally) merged.
    """
    regions = []
    for box in mask_components(mask):
        if not _big_enough(box, min_size):
            continue
        tight = tighten_bounds(mask, box)
        if _big_enough(tight, min_size):
            regions.append(tight)

    logger.debug(f"{len(regions)} foreground components of at least {min_size}px")
    return merge_boxes(regions) if merge else regions


def content_ratio(mask: np.ndarray, box: BoundingBox) -> float:
    """Fraction of on-pixels inside box."""
    window = mask[box.y:box.bottom, box.x:box.right]
    if window.size == 0:
        return 0.0
    return float(window.mean())
