"""Boolean pixel masks: foreground, dilation, and local-variance interest maps."""

from typing import Sequence

import numpy as np
import cv2

from ..raster.buffer import RasterBuffer
from ..logging import get_logger

logger = get_logger(__name__)

# Interest map parameters: 5x5 neighbourhood, pixels closer than this to the
# background are never interesting
VARIANCE_WINDOW = 5
INTEREST_BACKGROUND_TOLERANCE = 20

# Flat fills fall below the lower bound, dense text strokes above the upper
MIN_LOCAL_DEVIATION = 5.0
MAX_LOCAL_DEVIATION = 150.0


def build_foreground_mask(raster: RasterBuffer, background: Sequence[int], threshold: int) -> np.ndarray:
    """(H, W) mask, True where the pixel is not within threshold of background."""
    mask = ~raster.similar_to(background, threshold)
    logger.debug(f"Foreground mask: {int(mask.sum())}/{mask.size} pixels at threshold {threshold}")
    return mask


def dilate_mask(mask: np.ndarray, radius: int) -> np.ndarray:
    """Grow every True pixel into a (2r+1) square."""
    if radius <= 0:
        return mask.copy()
    kernel = np.ones((2 * radius + 1, 2 * radius + 1), np.uint8)
    dilated = cv2.dilate(mask.astype(np.uint8), kernel, iterations=1)
    return dilated.astype(bool)


def local_deviation(raster: RasterBuffer, window: int = VARIANCE_WINDOW) -> np.ndarray:
    """
    Per-pixel RGB standard deviation over a window x window neighbourhood:
    sqrt of the summed per-channel variances.
    """
    rgb = raster.rgb_int16().astype(np.float32)
    total = np.zeros(rgb.shape[:2], dtype=np.float32)
    for channel in range(3):
        values = np.ascontiguousarray(rgb[:, :, channel])
        mean = cv2.blur(values, (window, window))
        mean_sq = cv2.blur(values * values, (window, window))
        total += np.maximum(mean_sq - mean * mean, 0.0)
    return np.sqrt(total)


def interest_map(raster: RasterBuffer, background: Sequence[int]) -> np.ndarray:
    """
    Pixels that look like image content: not background, and with moderate
    local color variation. The outer window border is never marked.
    """
    deviation = local_deviation(raster)
    interesting = (deviation > MIN_LOCAL_DEVIATION) & (deviation < MAX_LOCAL_DEVIATION)
    interesting &= ~raster.similar_to(background, INTEREST_BACKGROUND_TOLERANCE)

    border = VARIANCE_WINDOW // 2
    interesting[:border, :] = False
    interesting[-border:, :] = False
    interesting[:, :border] = False
    interesting[:, -border:] = False
    return interesting
