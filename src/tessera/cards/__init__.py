"""UI card detection: solid fills, ruled borders and shadows."""

from .strategies import (
    RegionFinder,
    SolidColorRegionFinder,
    BorderedRegionFinder,
    ShadowBoundedRegionFinder,
)
from .detector import CardMultiPassDetector, detect_cards, default_finders

__all__ = [
    'RegionFinder',
    'SolidColorRegionFinder',
    'BorderedRegionFinder',
    'ShadowBoundedRegionFinder',
    'CardMultiPassDetector',
    'detect_cards',
    'default_finders',
]
