"""Cut and encode a single region of a raster."""

from ..raster.buffer import RasterBuffer
from ..raster.codec import EncodeError, encode_image
from ..regions.model import MIN_BOX_SIDE, BoundingBox
from ..logging import get_logger
from .model import CroppedImage

logger = get_logger(__name__)

DEFAULT_CROP_PADDING = 2


class CropError(Exception):
    """Raised when a box cannot be turned into an encoded crop."""


def crop_region(
    raster: RasterBuffer,
    box: BoundingBox,
    padding: int = DEFAULT_CROP_PADDING,
    fmt: str = "png",
    min_side: int = MIN_BOX_SIDE,
) -> CroppedImage:
    """
    Pad box, clamp it to the raster and encode the pixels under it.

    Raises:
        CropError: If the box lies outside the image, ends up smaller than
            min_side on either side, or cannot be encoded
    """
    clamped = box.clamped()
    if clamped is None:
        raise CropError(f"Box {box.as_tuple()} does not intersect the {raster.width}x{raster.height} image")

    region = clamped.padded(padding)
    if region.width < min_side or region.height < min_side:
        raise CropError(f"Region {region.width}x{region.height} is too small to extract")

    pixels = raster.pixels[region.y:region.bottom, region.x:region.right]
    try:
        data = encode_image(pixels, fmt)
    except EncodeError as exc:
        raise CropError(str(exc)) from exc

    logger.debug(f"Cropped {region.as_tuple()} ({len(data)} bytes)")
    return CroppedImage(data=data, width=region.width, height=region.height, box=region, fmt=fmt)
