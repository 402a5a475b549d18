"""Bounding boxes and region candidates."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# Crops and refined boxes smaller than this on either side are dropped
MIN_BOX_SIDE = 4


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned rectangle in pixel space of a source image.

    The normalized form (nx, ny, nw, nh) is derived from the pixel values and the
    source image size, so the two coordinate systems can never disagree.
    """

    x: int
    y: int
    width: int
    height: int
    image_width: int
    image_height: int

    @classmethod
    def from_edges(cls, left: int, top: int, right: int, bottom: int,
                   image_width: int, image_height: int) -> "BoundingBox":
        """Build from exclusive right/bottom edges."""
        return cls(left, top, right - left, bottom - top, image_width, image_height)

    @classmethod
    def from_normalized(cls, nx: float, ny: float, nw: float, nh: float,
                        image_width: int, image_height: int) -> "BoundingBox":
        return cls(
            x=int(round(nx * image_width)),
            y=int(round(ny * image_height)),
            width=int(round(nw * image_width)),
            height=int(round(nh * image_height)),
            image_width=image_width,
            image_height=image_height,
        )

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height > 0 else float("inf")

    @property
    def nx(self) -> float:
        return self.x / self.image_width if self.image_width > 0 else 0.0

    @property
    def ny(self) -> float:
        return self.y / self.image_height if self.image_height > 0 else 0.0

    @property
    def nw(self) -> float:
        return self.width / self.image_width if self.image_width > 0 else 0.0

    @property
    def nh(self) -> float:
        return self.height / self.image_height if self.image_height > 0 else 0.0

    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    def contains_point(self, px: int, py: int) -> bool:
        return self.x <= px < self.right and self.y <= py < self.bottom

    def clamped(self) -> Optional["BoundingBox"]:
        """
        Clip to the image. Returns None when nothing of the box remains
        (non-positive size, or entirely outside the image).
        """
        if not self.is_valid():
            return None
        left = max(0, self.x)
        top = max(0, self.y)
        right = min(self.image_width, self.right)
        bottom = min(self.image_height, self.bottom)
        if right <= left or bottom <= top:
            return None
        return BoundingBox.from_edges(left, top, right, bottom, self.image_width, self.image_height)

    def padded(self, padding: int) -> "BoundingBox":
        """Grow by padding on every side, clipped to the image."""
        left = max(0, self.x - padding)
        top = max(0, self.y - padding)
        right = min(self.image_width, self.right + padding)
        bottom = min(self.image_height, self.bottom + padding)
        return BoundingBox.from_edges(left, top, right, bottom, self.image_width, self.image_height)

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox.from_edges(
            min(self.x, other.x),
            min(self.y, other.y),
            max(self.right, other.right),
            max(self.bottom, other.bottom),
            self.image_width,
            self.image_height,
        )

    def intersection_area(self, other: "BoundingBox") -> int:
        overlap_x = max(0, min(self.right, other.right) - max(self.x, other.x))
        overlap_y = max(0, min(self.bottom, other.bottom) - max(self.y, other.y))
        return overlap_x * overlap_y

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "nx": self.nx,
            "ny": self.ny,
            "nw": self.nw,
            "nh": self.nh,
        }


class Provenance(Enum):
    """Which detector produced a candidate."""
    SOLID_COLOR = "solid-color"
    BORDERED = "bordered"
    SHADOW = "shadow"
    FLOOD_FILL = "flood-fill"
    CONTOUR = "contour"
    COMPONENT = "component"
    SECTION = "section"
    GRID = "grid"
    EDGE_REFINED = "edge-refined"
    EXTERNAL_SEED = "external-seed"


@dataclass(frozen=True)
class RegionCandidate:
    """A box plus where it came from, how sure we are, and a display label."""
    box: BoundingBox
    provenance: Provenance
    confidence: int = 50              # 0-100
    description: str = ""
    label: str = "image"

    def __post_init__(self) -> None:
        clamped = max(0, min(100, int(self.confidence)))
        if clamped != self.confidence:
            object.__setattr__(self, "confidence", clamped)

    def with_box(self, box: BoundingBox) -> "RegionCandidate":
        return replace(self, box=box)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "box": self.box.to_dict(),
            "provenance": self.provenance.value,
            "confidence": self.confidence,
            "description": self.description,
            "label": self.label,
        }
