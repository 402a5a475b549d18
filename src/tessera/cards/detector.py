"""Multi-pass UI card detection."""

from typing import List, Optional, Sequence

from ..raster.buffer import RasterBuffer
from ..regions.model import RegionCandidate
from ..regions.merge import merge_candidates, overlaps_significantly
from ..logging import get_logger
from .strategies import (
    BorderedRegionFinder,
    RegionFinder,
    ShadowBoundedRegionFinder,
    SolidColorRegionFinder,
)

logger = get_logger(__name__)

# Later passes only contribute regions that do not mostly cover an earlier card
LATER_PASS_OVERLAP = 0.7


def default_finders() -> List[RegionFinder]:
    return [SolidColorRegionFinder(), BorderedRegionFinder(), ShadowBoundedRegionFinder()]


class CardMultiPassDetector:
    """
    Run card finders in order. The first finder's regions are all kept; each
    later finder adds only regions that do not overlap an accepted card by
    more than LATER_PASS_OVERLAP. The union is merged and sorted by area,
    largest first.
    """

    def __init__(self, finders: Optional[Sequence[RegionFinder]] = None):
        self.finders = list(finders) if finders is not None else default_finders()

    def detect(self, raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[RegionCandidate]:
        cards: List[RegionCandidate] = []

        for pass_index, finder in enumerate(self.finders):
            if not finder.implemented:
                logger.debug(f"Skipping {finder.name} finder (not implemented)")
                continue

            found = finder.find(raster, background, min_size)
            if pass_index == 0:
                cards.extend(found)
                continue

            for candidate in found:
                if not any(
                    overlaps_significantly(candidate.box, existing.box, LATER_PASS_OVERLAP)
                    for existing in cards
                ):
                    cards.append(candidate)

        merged = merge_candidates(cards)
        merged.sort(key=lambda card: card.box.area, reverse=True)
        logger.debug(f"Card detection: {len(cards)} candidates, {len(merged)} after merge")
        return merged


def detect_cards(raster: RasterBuffer, background: Sequence[int], min_size: int) -> List[RegionCandidate]:
    return CardMultiPassDetector().detect(raster, background, min_size)
