from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .raster.codec import FORMAT_EXTENSIONS, is_supported_format


@dataclass
class Settings:
    output_dir: Path = Path("output")
    crop_format: str = "png"
    crop_padding: int = 2
    max_workers: int = 4

    def __post_init__(self) -> None:
        if not is_supported_format(self.crop_format):
            valid = ", ".join(sorted(set(FORMAT_EXTENSIONS.values())))
            raise ValueError(f"Unsupported crop format '{self.crop_format}'. Expected one of: {valid}")
        if self.crop_padding < 0:
            raise ValueError(f"crop_padding must be >= 0, got {self.crop_padding}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")


class CropMode(Enum):
    """Detection modes understood by the extractor."""
    GRID = "grid"
    SECTIONS = "sections"
    COMPONENTS = "components"
    CONTOUR = "contour"
    FLOOD_FILL = "flood-fill"
    UI_CARDS = "ui-cards"
    SMART_DETECT = "smart-detect"
    HYBRID = "hybrid"

    @classmethod
    def parse(cls, value: Union[str, "CropMode"]) -> "CropMode":
        """Accept an enum member, its value ("flood-fill") or its name ("FLOOD_FILL")."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for mode in cls:
            if text.lower() == mode.value or text.upper().replace("-", "_") == mode.name:
                return mode
        valid = ", ".join(mode.value for mode in cls)
        raise ValueError(f"Unknown crop mode '{value}'. Expected one of: {valid}")


@dataclass
class ExtractionOptions:
    """Mode selector plus tunable thresholds for a single extraction call."""

    mode: CropMode = CropMode.CONTOUR

    # Components narrower or shorter than this are dropped by the caller
    min_component_size: int = 20

    # Luma gradient needed for the edge refiner to accept a scanline pixel
    edge_detection_threshold: int = 30

    # None lets each mode use its own default (contour 25, flood fill 15)
    color_tolerance: Optional[int] = None

    # Grid tiling
    rows: int = 2
    columns: int = 2

    refine_with_edge_detection: bool = True
    detect_only: bool = False

    # None falls back to Settings.crop_padding
    padding: Optional[int] = None

    def __post_init__(self) -> None:
        self.mode = CropMode.parse(self.mode)
        if self.rows < 1 or self.columns < 1:
            raise ValueError(f"Grid needs at least one row and column, got {self.rows}x{self.columns}")
        if self.min_component_size < 1:
            raise ValueError(f"min_component_size must be positive, got {self.min_component_size}")
        if self.edge_detection_threshold < 0:
            raise ValueError(f"edge_detection_threshold must be >= 0, got {self.edge_detection_threshold}")
        if self.color_tolerance is not None and self.color_tolerance < 0:
            raise ValueError(f"color_tolerance must be >= 0, got {self.color_tolerance}")
        if self.padding is not None and self.padding < 0:
            raise ValueError(f"padding must be >= 0, got {self.padding}")

    def tolerance_or(self, default: int) -> int:
        return default if self.color_tolerance is None else self.color_tolerance
