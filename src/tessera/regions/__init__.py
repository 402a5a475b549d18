"""Bounding box model, merging and shape classification."""

from .model import BoundingBox, Provenance, RegionCandidate, MIN_BOX_SIDE
from .merge import (
    merge_boxes,
    merge_candidates,
    overlaps_significantly,
    regions_adjacent,
    is_box_overlapping,
)
from .classify import (
    ShapeThresholds,
    REGION_SHAPES,
    COMPONENT_SHAPES,
    SEED_SHAPES,
    classify_shape,
    classify_region,
    classify_component,
    classify_card,
    classify_seed,
)

__all__ = [
    "BoundingBox",
    "Provenance",
    "RegionCandidate",
    "MIN_BOX_SIDE",
    "merge_boxes",
    "merge_candidates",
    "overlaps_significantly",
    "regions_adjacent",
    "is_box_overlapping",
    "ShapeThresholds",
    "REGION_SHAPES",
    "COMPONENT_SHAPES",
    "SEED_SHAPES",
    "classify_shape",
    "classify_region",
    "classify_component",
    "classify_card",
    "classify_seed",
]
