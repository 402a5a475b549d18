"""
Per-mode region discovery.

Every CropMode maps to one strategy function that turns a raster into a
ModePlan: the candidate regions plus how they should be cropped and
summarised. Clamping, size filtering, cropping and naming happen afterwards in
the service, identically for every mode.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional

from ..config import CropMode, ExtractionOptions
from ..raster.buffer import RasterBuffer
from ..regions.classify import classify_card, classify_component, classify_region
from ..regions.merge import is_box_overlapping
from ..regions.model import MIN_BOX_SIDE, BoundingBox, Provenance, RegionCandidate
from ..segmentation.background import estimate_background_color
from ..segmentation.components import find_rectangular_regions, flood_fill_color, new_visited
from ..segmentation.edges import refine_bounds
from ..segmentation.mask import build_foreground_mask
from ..segmentation.sections import find_horizontal_dividers, section_bounds_from_dividers
from ..segmentation.ui import detect_ui_components
from ..cards.detector import CardMultiPassDetector
from ..logging import get_logger
from .detectors import DetectorUnavailableError, ExternalDetector

logger = get_logger(__name__)

CONTOUR_TOLERANCE = 25
FLOOD_FILL_TOLERANCE = 15
FLOOD_FILL_SCAN_STEP = 2
FLOOD_FILL_REPLACE_OVERLAP = 0.5

COMPONENT_PADDING = 4
CARD_PADDING = 6

HYBRID_REFINE_THRESHOLD = 25
HYBRID_SEED_OVERLAP = 0.5


@dataclass
class ModeContext:
    raster: RasterBuffer
    options: ExtractionOptions
    detector: Optional[ExternalDetector] = None


@dataclass
class ModePlan:
    """
    Candidates from one mode run.

    padding overrides the crop padding for this mode (None keeps the caller's).
    min_side is the smallest emitted width or height; grid tiles use 1 so a
    grid always yields every cell.
    summary is formatted with count=<number of emitted regions>.
    """
    candidates: List[RegionCandidate] = field(default_factory=list)
    summary: str = "Extracted {count} regions"
    empty_summary: str = "No regions detected"
    padding: Optional[int] = None
    min_side: int = MIN_BOX_SIDE


ModeStrategy = Callable[[ModeContext], ModePlan]


def _size_label(label: str, box: BoundingBox) -> str:
    return f"{label} ({box.width}x{box.height})"


def grid_mode(ctx: ModeContext) -> ModePlan:
    """rows x columns tiles; the last row and column absorb the remainder."""
    raster, options = ctx.raster, ctx.options
    width, height = raster.width, raster.height
    rows = min(options.rows, height)
    columns = min(options.columns, width)
    cell_width = width // columns
    cell_height = height // rows

    candidates = []
    for row in range(rows):
        for col in range(columns):
            x = col * cell_width
            y = row * cell_height
            w = width - x if col == columns - 1 else cell_width
            h = height - y if row == rows - 1 else cell_height
            candidates.append(RegionCandidate(
                box=BoundingBox(x, y, w, h, width, height),
                provenance=Provenance.GRID,
                confidence=100,
                description=f"Grid cell [{row},{col}]",
                label="grid-cell",
            ))

    return ModePlan(
        candidates=candidates,
        summary=f"Extracted {rows}x{columns} grid ({{count}} cells)",
        empty_summary="Grid produced no usable cells",
        padding=0,
        min_side=1,
    )


def sections_mode(ctx: ModeContext) -> ModePlan:
    raster = ctx.raster
    dividers = find_horizontal_dividers(raster)
    bounds = section_bounds_from_dividers(dividers, raster.width, raster.height)

    candidates = []
    for box in bounds:
        candidates.append(RegionCandidate(
            box=box,
            provenance=Provenance.SECTION,
            confidence=90,
            description=f"Section {len(candidates) + 1}",
            label="section",
        ))

    if len(candidates) == 1 and candidates[0].box.as_tuple() == (0, 0, raster.width, raster.height):
        candidates[0] = RegionCandidate(
            box=candidates[0].box,
            provenance=Provenance.SECTION,
            confidence=100,
            description="Full image (no sections detected)",
            label="section",
        )

    return ModePlan(
        candidates=candidates,
        summary="Detected {count} horizontal sections",
        empty_summary="No sections detected",
    )


def components_mode(ctx: ModeContext) -> ModePlan:
    raster, options = ctx.raster, ctx.options
    background = estimate_background_color(raster)
    boxes = detect_ui_components(raster, background, options.min_component_size)

    candidates = []
    for box in boxes:
        label = classify_component(box.width, box.height)
        candidates.append(RegionCandidate(
            box=box.padded(COMPONENT_PADDING),
            provenance=Provenance.COMPONENT,
            confidence=85,
            description=f"{label.capitalize()} component ({box.width}x{box.height})",
            label=label,
        ))

    return ModePlan(
        candidates=candidates,
        summary="Detected {count} UI components",
        empty_summary="No UI components detected",
    )


def contour_regions(raster: RasterBuffer, tolerance: int, min_size: int) -> List[BoundingBox]:
    """Background-relative foreground components, tightened and merged."""
    background = estimate_background_color(raster)
    mask = build_foreground_mask(raster, background, tolerance)
    return find_rectangular_regions(mask, min_size)


def contour_mode(ctx: ModeContext) -> ModePlan:
    raster, options = ctx.raster, ctx.options
    boxes = contour_regions(raster, options.tolerance_or(CONTOUR_TOLERANCE), options.min_component_size)

    candidates = []
    for box in boxes:
        label = classify_region(box.width, box.height)
        candidates.append(RegionCandidate(
            box=box,
            provenance=Provenance.CONTOUR,
            confidence=95,
            description=_size_label(label.capitalize(), box),
            label=label,
        ))

    return ModePlan(
        candidates=candidates,
        summary="Detected {count} regions via contour detection",
        empty_summary="No regions detected via contour detection",
    )


def flood_fill_regions(raster: RasterBuffer, tolerance: int, min_size: int) -> List[BoundingBox]:
    """
    Color fills seeded on a coarse grid. A fill that mostly covers an accepted
    region replaces it only when it is larger.
    """
    background = estimate_background_color(raster)
    off_background = ~raster.similar_to(background, tolerance)
    visited = new_visited(raster.width, raster.height)
    width = raster.width
    regions: List[BoundingBox] = []

    for y in range(0, raster.height, FLOOD_FILL_SCAN_STEP):
        row_seeds = off_background[y, ::FLOOD_FILL_SCAN_STEP]
        for col in row_seeds.nonzero()[0].tolist():
            x = col * FLOOD_FILL_SCAN_STEP
            if visited[y * width + x]:
                continue

            box = flood_fill_color(raster, visited, x, y, tolerance)
            if box.width < min_size or box.height < min_size:
                continue

            overlapping = [i for i, existing in enumerate(regions)
                           if is_box_overlapping(box, [existing], FLOOD_FILL_REPLACE_OVERLAP)]
            if not overlapping:
                regions.append(box)
                continue
            index = overlapping[0]
            if box.area > regions[index].area:
                regions[index] = box

    return regions


def flood_fill_mode(ctx: ModeContext) -> ModePlan:
    raster, options = ctx.raster, ctx.options
    boxes = flood_fill_regions(raster, options.tolerance_or(FLOOD_FILL_TOLERANCE), options.min_component_size)

    candidates = []
    for box in boxes:
        label = classify_region(box.width, box.height)
        candidates.append(RegionCandidate(
            box=box,
            provenance=Provenance.FLOOD_FILL,
            confidence=90,
            description=_size_label(label.capitalize(), box),
            label=label,
        ))

    return ModePlan(
        candidates=candidates,
        summary="Detected {count} regions via flood fill",
        empty_summary="No regions detected via flood fill",
    )


def ui_cards_mode(ctx: ModeContext) -> ModePlan:
    raster, options = ctx.raster, ctx.options
    background = estimate_background_color(raster)
    cards = CardMultiPassDetector().detect(raster, background, options.min_component_size)

    candidates = []
    for card in cards:
        box = card.box
        label = classify_card(box.width, box.height)
        candidates.append(RegionCandidate(
            box=box.padded(CARD_PADDING),
            provenance=card.provenance,
            confidence=92,
            description=_size_label(label.replace("-", " ").capitalize(), box),
            label=label,
        ))

    return ModePlan(
        candidates=candidates,
        summary="Detected {count} UI cards/widgets",
        empty_summary="No UI cards detected",
    )


def _require_detector(ctx: ModeContext) -> ExternalDetector:
    if ctx.detector is None:
        raise DetectorUnavailableError("No external detector configured")
    return ctx.detector


def _external_seeds(ctx: ModeContext) -> List[RegionCandidate]:
    seeds = []
    for seed in ctx.detector.detect(ctx.raster):
        box = seed.box.clamped()
        if box is None:
            logger.debug(f"Dropping seed outside the image: {seed.box.as_tuple()}")
            continue
        seeds.append(seed.with_box(box))
    return seeds


def _refined(raster: RasterBuffer, candidate: RegionCandidate, threshold: int) -> RegionCandidate:
    box = refine_bounds(raster, candidate.box, threshold)
    return RegionCandidate(
        box=box,
        provenance=Provenance.EDGE_REFINED,
        confidence=candidate.confidence,
        description=candidate.description,
        label=candidate.label,
    )


def smart_detect_mode(ctx: ModeContext) -> ModePlan:
    _require_detector(ctx)
    options = ctx.options
    seeds = _external_seeds(ctx)

    candidates = []
    for seed in seeds:
        if not seed.description:
            seed = replace(seed, description="Detected region")
        if options.refine_with_edge_detection:
            seed = _refined(ctx.raster, seed, options.edge_detection_threshold)
        candidates.append(seed)

    logger.info(f"Smart detect: {len(seeds)} seeds, refinement {'on' if options.refine_with_edge_detection else 'off'}")
    return ModePlan(
        candidates=candidates,
        summary="Detected {count} regions from external seeds",
        empty_summary="External detector returned no usable regions",
    )


def hybrid_mode(ctx: ModeContext) -> ModePlan:
    raster, options = ctx.raster, ctx.options

    sourced = []
    if ctx.detector is not None:
        sourced.extend((seed, "external") for seed in _external_seeds(ctx))
    else:
        logger.info("Hybrid mode without an external detector; using contour regions only")

    accepted = [seed.box for seed, _ in sourced]
    tolerance = options.tolerance_or(CONTOUR_TOLERANCE)
    for box in contour_regions(raster, tolerance, options.min_component_size):
        if is_box_overlapping(box, accepted, HYBRID_SEED_OVERLAP):
            continue
        accepted.append(box)
        label = classify_region(box.width, box.height)
        sourced.append((
            RegionCandidate(box, Provenance.CONTOUR, 95, _size_label(label.capitalize(), box), label),
            "contour",
        ))

    candidates = []
    for candidate, source in sourced:
        refined = _refined(raster, candidate, HYBRID_REFINE_THRESHOLD)
        description = candidate.description or "Detected region"
        candidates.append(RegionCandidate(
            box=refined.box,
            provenance=refined.provenance,
            confidence=candidate.confidence,
            description=f"{description} [{source}]",
            label=candidate.label,
        ))

    return ModePlan(
        candidates=candidates,
        summary="Hybrid detection found {count} regions",
        empty_summary="No regions detected via hybrid detection",
    )


MODE_STRATEGIES: Dict[CropMode, ModeStrategy] = {
    CropMode.GRID: grid_mode,
    CropMode.SECTIONS: sections_mode,
    CropMode.COMPONENTS: components_mode,
    CropMode.CONTOUR: contour_mode,
    CropMode.FLOOD_FILL: flood_fill_mode,
    CropMode.UI_CARDS: ui_cards_mode,
    CropMode.SMART_DETECT: smart_detect_mode,
    CropMode.HYBRID: hybrid_mode,
}

MODE_DESCRIPTIONS: Dict[CropMode, str] = {
    CropMode.GRID: "Split the image into a rows x columns grid",
    CropMode.SECTIONS: "Cut full-width horizontal bands at uniform dividers",
    CropMode.COMPONENTS: "Find UI components from local color variance",
    CropMode.CONTOUR: "Foreground components against the detected background",
    CropMode.FLOOD_FILL: "Grow color-similar regions from a coarse seed grid",
    CropMode.UI_CARDS: "Multi-pass card detection (solid fills, borders)",
    CropMode.SMART_DETECT: "Crop regions supplied by an external detector, edge-refined",
    CropMode.HYBRID: "External seeds plus contour regions, edge-refined",
}
