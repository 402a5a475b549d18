"""Background color estimation from border samples."""

from collections import Counter
from typing import Dict, List, Tuple

from ..raster.buffer import RasterBuffer
from ..logging import get_logger

logger = get_logger(__name__)

# Channels are bucketed to multiples of this before voting
QUANTIZATION_STEP = 10

# Roughly this many samples are taken along each edge
EDGE_SAMPLES = 20

RGB = Tuple[int, int, int]


def sample_border_pixels(raster: RasterBuffer) -> List[RGB]:
    """Four corners, then evenly spaced points along the top/bottom rows and left/right columns."""
    w, h = raster.width, raster.height
    samples = [
        raster.rgb(0, 0),
        raster.rgb(w - 1, 0),
        raster.rgb(0, h - 1),
        raster.rgb(w - 1, h - 1),
    ]

    for x in range(0, w, max(1, w // EDGE_SAMPLES)):
        samples.append(raster.rgb(x, 0))
        samples.append(raster.rgb(x, h - 1))
    for y in range(0, h, max(1, h // EDGE_SAMPLES)):
        samples.append(raster.rgb(0, y))
        samples.append(raster.rgb(w - 1, y))

    return samples


def quantize(color: RGB, step: int = QUANTIZATION_STEP) -> RGB:
    return (color[0] // step * step, color[1] // step * step, color[2] // step * step)


def estimate_background_color(raster: RasterBuffer) -> RGB:
    """
    Vote for the dominant border color.

    Samples are grouped by their quantized value; the winning group is
    represented by its first sampled pixel, so the result is always a color
    that actually occurs on the border. Ties go to the group seen first.
    """
    samples = sample_border_pixels(raster)

    votes: Counter = Counter()
    representatives: Dict[RGB, RGB] = {}
    for color in samples:
        key = quantize(color)
        votes[key] += 1
        representatives.setdefault(key, color)

    winner, count = votes.most_common(1)[0]
    background = representatives[winner]

    logger.debug(
        f"Background {background} from {count}/{len(samples)} border samples "
        f"({len(votes)} color groups)"
    )
    return background
