"""Mode dispatch, cropping and the RegionExtractor service."""

from .model import CroppedImage, ExtractedRegion, ExtractionResult
from .crop import CropError, crop_region
from .detectors import (
    DetectorUnavailableError,
    ExternalDetector,
    SeedRegion,
    StaticDetector,
    load_seed_file,
)
from .modes import MODE_STRATEGIES, MODE_DESCRIPTIONS, ModeContext, ModePlan
from .service import ExtractionJob, RegionExtractor

__all__ = [
    'CroppedImage',
    'ExtractedRegion',
    'ExtractionResult',
    'CropError',
    'crop_region',
    'DetectorUnavailableError',
    'ExternalDetector',
    'SeedRegion',
    'StaticDetector',
    'load_seed_file',
    'MODE_STRATEGIES',
    'MODE_DESCRIPTIONS',
    'ModeContext',
    'ModePlan',
    'ExtractionJob',
    'RegionExtractor',
]
