"""
External region detectors.

SmartDetect and Hybrid modes take their seed regions from an ExternalDetector.
The engine never talks to a service itself; a caller wires in whatever produces
seeds. StaticDetector replays a fixed list, e.g. loaded from a JSON seed file.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..raster.buffer import RasterBuffer
from ..regions.classify import classify_seed
from ..regions.model import BoundingBox, Provenance, RegionCandidate
from ..logging import get_logger

logger = get_logger(__name__)

# Normalized sizes at or below this are treated as absent
NORMALIZED_EPSILON = 0.001

DEFAULT_SEED_CONFIDENCE = 80


class DetectorUnavailableError(Exception):
    """Raised when a mode needs an external detector and none is configured."""


@runtime_checkable
class ExternalDetector(Protocol):
    def detect(self, raster: RasterBuffer) -> Sequence[RegionCandidate]:
        ...


@dataclass(frozen=True)
class SeedRegion:
    """
    One externally supplied region, in pixel or normalized coordinates.

    Normalized coordinates win when both are present and nw/nh are non-trivial.
    """
    x: Optional[int] = None
    y: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    nx: Optional[float] = None
    ny: Optional[float] = None
    nw: Optional[float] = None
    nh: Optional[float] = None
    label: Optional[str] = None
    description: str = ""
    confidence: int = DEFAULT_SEED_CONFIDENCE
    tags: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SeedRegion":
        known = {name for name in cls.__dataclass_fields__}
        unknown = set(data) - known
        if unknown:
            logger.debug(f"Ignoring unknown seed fields: {sorted(unknown)}")
        values = {key: value for key, value in data.items() if key in known}
        if "tags" in values:
            values["tags"] = tuple(values["tags"] or ())
        return cls(**values)

    def _has_normalized(self) -> bool:
        return (
            self.nx is not None
            and self.ny is not None
            and (self.nw or 0) > NORMALIZED_EPSILON
            and (self.nh or 0) > NORMALIZED_EPSILON
        )

    def _has_pixels(self) -> bool:
        return None not in (self.x, self.y, self.width, self.height)

    def to_box(self, image_width: int, image_height: int) -> Optional[BoundingBox]:
        if self._has_normalized():
            return BoundingBox.from_normalized(self.nx, self.ny, self.nw, self.nh, image_width, image_height)
        if self._has_pixels():
            return BoundingBox(int(self.x), int(self.y), int(self.width), int(self.height),
                               image_width, image_height)
        return None

    def to_candidate(self, image_width: int, image_height: int) -> Optional[RegionCandidate]:
        box = self.to_box(image_width, image_height)
        if box is None:
            return None
        label = self.label or classify_seed(self.description, self.tags, box.width, box.height)
        return RegionCandidate(
            box=box,
            provenance=Provenance.EXTERNAL_SEED,
            confidence=self.confidence,
            description=self.description,
            label=label,
        )


class StaticDetector:
    """ExternalDetector that returns the same seed regions for every image."""

    def __init__(self, seeds: Sequence[SeedRegion]):
        self.seeds = list(seeds)

    def detect(self, raster: RasterBuffer) -> List[RegionCandidate]:
        candidates = []
        for seed in self.seeds:
            candidate = seed.to_candidate(raster.width, raster.height)
            if candidate is None:
                logger.debug(f"Seed without usable coordinates skipped: {seed}")
                continue
            candidates.append(candidate)
        return candidates


def load_seed_file(path: Path) -> StaticDetector:
    """
    Load seeds from a JSON file: a list of region objects, or an object with a
    "regions" list.

    Raises:
        ValueError: If the file is not valid JSON or has the wrong shape
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Seed file {path} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("regions", [])
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise ValueError(f"Seed file {path} must contain a list of region objects")

    seeds = []
    for item in data:
        try:
            seeds.append(SeedRegion.from_dict(item))
        except TypeError as exc:
            raise ValueError(f"Invalid seed entry {item}: {exc}") from exc

    logger.info(f"Loaded {len(seeds)} seed regions from {path}")
    return StaticDetector(seeds)
