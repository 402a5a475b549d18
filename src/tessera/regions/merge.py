"""
Overlap and adjacency based merging of candidate boxes.

Merging is order-dependent: boxes are folded into the earliest box they touch,
and whole passes repeat until a pass performs no merge. The output is therefore
a fixed point (re-merging it changes nothing) but not a globally minimal cover.
"""

from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .model import BoundingBox, RegionCandidate
from ..logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Default fraction of the smaller box that must be covered to merge
DEFAULT_OVERLAP_THRESHOLD = 0.3

# Default gap (pixels) under which touching boxes are considered adjacent
DEFAULT_ADJACENCY_MARGIN = 5

MergePredicate = Callable[[BoundingBox, BoundingBox], bool]


def overlaps_significantly(a: BoundingBox, b: BoundingBox, threshold: float) -> bool:
    """Intersection area exceeds threshold times the smaller box's area."""
    smaller_area = min(a.area, b.area)
    return a.intersection_area(b) > smaller_area * threshold


def regions_adjacent(a: BoundingBox, b: BoundingBox, margin: int = DEFAULT_ADJACENCY_MARGIN) -> bool:
    """Within margin along one axis while overlapping on the other."""
    h_adjacent = a.right + margin >= b.x and a.x <= b.right + margin
    v_overlap = a.y < b.bottom and a.bottom > b.y

    v_adjacent = a.bottom + margin >= b.y and a.y <= b.bottom + margin
    h_overlap = a.x < b.right and a.right > b.x

    return (h_adjacent and v_overlap) or (v_adjacent and h_overlap)


def is_box_overlapping(box: BoundingBox, existing: Sequence[BoundingBox], threshold: float = 0.5) -> bool:
    """True when box covers more than threshold of the smaller area of any existing box."""
    for other in existing:
        smaller_area = min(box.area, other.area)
        if smaller_area > 0 and box.intersection_area(other) / smaller_area > threshold:
            return True
    return False


def _default_predicate(overlap_threshold: float, margin: int) -> MergePredicate:
    def should_merge(a: BoundingBox, b: BoundingBox) -> bool:
        return overlaps_significantly(a, b, overlap_threshold) or regions_adjacent(a, b, margin)
    return should_merge


def _merge_pass(
    items: List[T],
    box_of: Callable[[T], BoundingBox],
    should_merge: MergePredicate,
    combine: Callable[[T, T], T],
) -> Tuple[List[T], bool]:
    """One left-to-right pass. Returns (merged_items, merged_anything)."""
    merged: List[T] = []
    used = [False] * len(items)
    merged_anything = False

    for i, item in enumerate(items):
        if used[i]:
            continue

        current = item
        used[i] = True
        merged_any = True

        while merged_any:
            merged_any = False
            for j in range(i + 1, len(items)):
                if used[j]:
                    continue
                if should_merge(box_of(current), box_of(items[j])):
                    current = combine(current, items[j])
                    used[j] = True
                    merged_any = True
                    merged_anything = True

        merged.append(current)

    return merged, merged_anything


def _merge_to_fixed_point(
    items: Sequence[T],
    box_of: Callable[[T], BoundingBox],
    should_merge: MergePredicate,
    combine: Callable[[T, T], T],
) -> List[T]:
    current = list(items)
    if len(current) <= 1:
        return current

    passes = 0
    changed = True
    while changed:
        current, changed = _merge_pass(current, box_of, should_merge, combine)
        passes += 1

    logger.debug(f"Merged {len(items)} regions into {len(current)} after {passes} passes")
    return current


def merge_boxes(
    boxes: Sequence[BoundingBox],
    overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    margin: int = DEFAULT_ADJACENCY_MARGIN,
    predicate: Optional[MergePredicate] = None,
) -> List[BoundingBox]:
    """
    Union boxes that overlap significantly or sit next to each other.

    Args:
        boxes: Candidate boxes, all from the same source image
        overlap_threshold: Fraction of the smaller box that must be covered
        margin: Adjacency margin in pixels
        predicate: Replaces the overlap/adjacency test when given

    Returns:
        Merged boxes; each is the exact axis-aligned union of its inputs
    """
    should_merge = predicate or _default_predicate(overlap_threshold, margin)
    return _merge_to_fixed_point(boxes, lambda box: box, should_merge, lambda a, b: a.union(b))


def _combine_candidates(a: RegionCandidate, b: RegionCandidate) -> RegionCandidate:
    # The larger contributor keeps its provenance and labels
    dominant = a if a.box.area >= b.box.area else b
    return RegionCandidate(
        box=a.box.union(b.box),
        provenance=dominant.provenance,
        confidence=max(a.confidence, b.confidence),
        description=dominant.description,
        label=dominant.label,
    )


def merge_candidates(
    candidates: Sequence[RegionCandidate],
    overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD,
    margin: int = DEFAULT_ADJACENCY_MARGIN,
    predicate: Optional[MergePredicate] = None,
) -> List[RegionCandidate]:
    """merge_boxes over candidates, carrying provenance and confidence along."""
    should_merge = predicate or _default_predicate(overlap_threshold, margin)
    return _merge_to_fixed_point(candidates, lambda c: c.box, should_merge, _combine_candidates)
