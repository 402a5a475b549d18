"""
tessera: model-free region segmentation for screenshots and UI composites.

Typical use::

    from tessera import RegionExtractor, ExtractionOptions, CropMode

    result = RegionExtractor().extract(png_bytes, "image/png", ExtractionOptions(mode=CropMode.UI_CARDS))
    for region in result.regions:
        print(region.suggested_filename, region.box.as_tuple(), region.label)
"""

from .config import CropMode, ExtractionOptions, Settings
from .raster import RasterBuffer, DecodeError, EncodeError, decode_image, encode_image
from .regions import BoundingBox, Provenance, RegionCandidate
from .extraction import (
    CropError,
    CroppedImage,
    ExtractedRegion,
    ExtractionJob,
    ExtractionResult,
    ExternalDetector,
    RegionExtractor,
    StaticDetector,
)

__version__ = "0.1.0"

__all__ = [
    'CropMode',
    'ExtractionOptions',
    'Settings',
    'RasterBuffer',
    'DecodeError',
    'EncodeError',
    'decode_image',
    'encode_image',
    'BoundingBox',
    'Provenance',
    'RegionCandidate',
    'CropError',
    'CroppedImage',
    'ExtractedRegion',
    'ExtractionJob',
    'ExtractionResult',
    'ExternalDetector',
    'RegionExtractor',
    'StaticDetector',
]
