"""
Structured manifest generation for extraction output.

A manifest records the source image, the mode and outcome of the run, and one
item per extracted region with its box, label, provenance and crop file.
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime

from ..extraction.model import ExtractionResult
from ..logging import get_logger

logger = get_logger(__name__)

MANIFEST_VERSION = "1.0.0"


@dataclass(frozen=True)
class ManifestItem:
    """Single region in the manifest."""
    index: int                              # 1-based position in the result
    file_name: str                          # Suggested crop file name
    label: str                              # Semantic label (icon, card, section, ...)
    provenance: str                         # Detector that produced the region
    confidence: int                         # 0-100
    description: str
    bbox: Dict[str, float]                  # Pixel and normalized coordinates
    dimensions: Dict[str, int]              # Crop payload size
    file_path: Optional[str] = None         # Path to saved crop, if written

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class Manifest:
    """Complete manifest describing one extraction run."""
    version: str
    source_image: str
    extraction_timestamp: str
    mode: Optional[str]
    success: bool
    summary: Optional[str]
    error_message: Optional[str]
    total_items: int
    items: List[ManifestItem]
    label_distribution: Optional[Dict[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "version": self.version,
            "source_image": self.source_image,
            "extraction_timestamp": self.extraction_timestamp,
            "mode": self.mode,
            "success": self.success,
            "summary": self.summary,
            "error_message": self.error_message,
            "total_items": self.total_items,
            "items": [item.to_dict() for item in self.items]
        }
        if self.label_distribution is not None:
            result["label_distribution"] = self.label_distribution
        return result


def build_manifest(
    source_path: Path,
    result: ExtractionResult,
    path_mapping: Optional[Dict[str, Path]] = None
) -> Manifest:
    """
    Build a manifest from an extraction result.

    Args:
        source_path: Path of the source image
        result: Extraction result to describe
        path_mapping: Suggested filename -> saved path, from save_crops

    Returns:
        Complete Manifest object
    """
    path_mapping = path_mapping or {}

    items = []
    for index, region in enumerate(result.regions, start=1):
        saved_path = path_mapping.get(region.suggested_filename)
        items.append(ManifestItem(
            index=index,
            file_name=region.suggested_filename,
            label=region.label,
            provenance=region.provenance.value,
            confidence=region.confidence,
            description=region.description,
            bbox=region.box.to_dict(),
            dimensions={"width": region.width, "height": region.height},
            file_path=str(saved_path) if saved_path else None
        ))

    distribution: Dict[str, int] = {}
    for item in items:
        distribution[item.label] = distribution.get(item.label, 0) + 1

    manifest = Manifest(
        version=MANIFEST_VERSION,
        source_image=str(source_path),
        extraction_timestamp=datetime.now().isoformat(),
        mode=result.mode.value if result.mode else None,
        success=result.success,
        summary=result.summary,
        error_message=result.error_message,
        total_items=len(items),
        items=items,
        label_distribution=distribution or None
    )

    logger.info(f"Built manifest with {len(items)} items")
    return manifest


def save_crops(result: ExtractionResult, output_dir: Path) -> Dict[str, Path]:
    """
    Write every region's crop payload under output_dir.

    Regions without a payload (detect-only runs) are skipped.

    Returns:
        Mapping of suggested filename to written path
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path_mapping: Dict[str, Path] = {}

    for region in result.regions:
        if region.image_data is None:
            continue
        path = output_dir / region.suggested_filename
        path.write_bytes(region.image_data)
        path_mapping[region.suggested_filename] = path

    logger.info(f"Saved {len(path_mapping)} crops to {output_dir}")
    return path_mapping


def write_manifest_json(manifest: Manifest, output_dir: Path) -> Path:
    """
    Write manifest to JSON file in the output directory.

    Args:
        manifest: Manifest object to write
        output_dir: Directory to write manifest file

    Returns:
        Path to the written manifest file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    manifest_path = output_dir / "manifest.json"

    try:
        with open(manifest_path, 'w', encoding='utf-8') as f:
            json.dump(manifest.to_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Wrote manifest to {manifest_path}")
        return manifest_path

    except OSError as exc:
        logger.error(f"Failed to write manifest to {manifest_path}: {exc}")
        raise


def load_manifest_json(manifest_path: Path) -> Manifest:
    """
    Load manifest from JSON file.

    Args:
        manifest_path: Path to manifest JSON file

    Returns:
        Loaded Manifest object
    """
    try:
        with open(manifest_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        items = [ManifestItem(**item_data) for item_data in data.get("items", [])]

        manifest = Manifest(
            version=data["version"],
            source_image=data["source_image"],
            extraction_timestamp=data["extraction_timestamp"],
            mode=data.get("mode"),
            success=data["success"],
            summary=data.get("summary"),
            error_message=data.get("error_message"),
            total_items=data["total_items"],
            items=items,
            label_distribution=data.get("label_distribution")
        )

        logger.info(f"Loaded manifest from {manifest_path} with {len(items)} items")
        return manifest

    except (OSError, KeyError, TypeError, json.JSONDecodeError) as exc:
        logger.error(f"Failed to load manifest from {manifest_path}: {exc}")
        raise
