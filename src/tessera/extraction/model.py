"""Result types returned by the extraction service."""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config import CropMode
from ..regions.model import BoundingBox, Provenance, RegionCandidate


@dataclass(frozen=True)
class CroppedImage:
    """Encoded crop plus the rectangle actually cut (after padding and clamping)."""
    data: bytes
    width: int
    height: int
    box: BoundingBox
    fmt: str = "png"


@dataclass(frozen=True)
class ExtractedRegion:
    """One emitted region: its candidate, the encoded crop (None in detect-only runs) and a filename."""
    candidate: RegionCandidate
    image_data: Optional[bytes]
    suggested_filename: str
    width: int                      # payload width, or box width when detect-only
    height: int

    @property
    def box(self) -> BoundingBox:
        return self.candidate.box

    @property
    def label(self) -> str:
        return self.candidate.label

    @property
    def confidence(self) -> int:
        return self.candidate.confidence

    @property
    def description(self) -> str:
        return self.candidate.description

    @property
    def provenance(self) -> Provenance:
        return self.candidate.provenance

    @property
    def base64_data(self) -> Optional[str]:
        if self.image_data is None:
            return None
        return base64.b64encode(self.image_data).decode("ascii")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view without the binary payload."""
        result = self.candidate.to_dict()
        result.update({
            "suggested_filename": self.suggested_filename,
            "width": self.width,
            "height": self.height,
            "has_image_data": self.image_data is not None,
        })
        return result


@dataclass
class ExtractionResult:
    """
    Outcome of one extraction call.

    success is False both for failures (error_message set) and for runs that
    found nothing (error_message None, summary explains).
    """
    success: bool
    mode: Optional[CropMode] = None
    regions: List[ExtractedRegion] = field(default_factory=list)
    error_message: Optional[str] = None
    summary: Optional[str] = None
    source_width: int = 0
    source_height: int = 0

    @property
    def total_found(self) -> int:
        return len(self.regions)

    @classmethod
    def failure(cls, message: str, mode: Optional[CropMode] = None) -> "ExtractionResult":
        return cls(success=False, mode=mode, error_message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "mode": self.mode.value if self.mode else None,
            "total_found": self.total_found,
            "error_message": self.error_message,
            "summary": self.summary,
            "source_width": self.source_width,
            "source_height": self.source_height,
            "regions": [region.to_dict() for region in self.regions],
        }
