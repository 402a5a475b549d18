"""
RegionExtractor: decode, dispatch to a mode, then clamp, filter, crop and name.

Each call works on its own RasterBuffer and returns a fresh ExtractionResult,
so one extractor can serve many images concurrently.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from ..config import CropMode, ExtractionOptions, Settings
from ..raster.buffer import RasterBuffer
from ..raster.codec import DecodeError, decode_image, extension_for
from ..regions.model import BoundingBox
from ..segmentation.edges import DEFAULT_EDGE_THRESHOLD, refine_bounds
from ..logging import get_logger
from .crop import CropError, crop_region
from .detectors import ExternalDetector
from .model import CroppedImage, ExtractedRegion, ExtractionResult
from .modes import MODE_STRATEGIES, ModeContext, ModePlan, ModeStrategy

logger = get_logger(__name__)


@dataclass
class ExtractionJob:
    """One image queued for extract_many."""
    image_bytes: bytes
    mime_type: str = "image/png"
    options: ExtractionOptions = field(default_factory=ExtractionOptions)


def _slug(label: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", label.lower()).strip("-")
    return slug or "region"


def _mode_title(mode: CropMode) -> str:
    return mode.value.replace("-", " ").title()


class RegionExtractor:
    """
    Entry point for region extraction.

    Args:
        detector: Optional external detector used by smart-detect and hybrid modes
        settings: Crop format, default padding and worker count
        strategies: Mode table override, mainly for tests
    """

    def __init__(
        self,
        detector: Optional[ExternalDetector] = None,
        settings: Optional[Settings] = None,
        strategies: Optional[Dict[CropMode, ModeStrategy]] = None,
    ):
        self.detector = detector
        self.settings = settings or Settings()
        self.strategies = dict(strategies) if strategies is not None else dict(MODE_STRATEGIES)

    def extract(
        self,
        image_bytes: bytes,
        mime_type: str = "image/png",
        options: Optional[ExtractionOptions] = None,
    ) -> ExtractionResult:
        """
        Find and crop regions of interest in an encoded image.

        Never raises for bad input or detector failures; those come back as a
        result with success=False and error_message set.
        """
        options = options or ExtractionOptions()
        try:
            raster = decode_image(image_bytes, mime_type)
        except DecodeError as exc:
            logger.warning(f"Decode failed: {exc}")
            return ExtractionResult.failure(f"Failed to decode source image: {exc}", mode=options.mode)

        return self.extract_raster(raster, options)

    def extract_raster(self, raster: RasterBuffer, options: Optional[ExtractionOptions] = None) -> ExtractionResult:
        """extract() for an already decoded raster."""
        options = options or ExtractionOptions()
        mode = options.mode
        strategy = self.strategies.get(mode)
        if strategy is None:
            return ExtractionResult.failure(f"Unsupported crop mode: {mode.value}", mode=mode)

        logger.info(f"Running {mode.value} extraction on {raster.width}x{raster.height} image")
        try:
            plan = strategy(ModeContext(raster=raster, options=options, detector=self.detector))
            regions = self._materialize(raster, plan, options)
        except Exception as exc:
            logger.error(f"{_mode_title(mode)} extraction failed: {exc}")
            return ExtractionResult.failure(f"{_mode_title(mode)} extraction failed: {exc}", mode=mode)

        result = ExtractionResult(
            success=bool(regions),
            mode=mode,
            regions=regions,
            source_width=raster.width,
            source_height=raster.height,
        )
        if regions:
            result.summary = plan.summary.format(count=len(regions))
        else:
            result.summary = plan.empty_summary

        logger.info(f"{mode.value}: {len(plan.candidates)} candidates, {len(regions)} emitted")
        return result

    def identify(
        self,
        image_bytes: bytes,
        mime_type: str = "image/png",
        options: Optional[ExtractionOptions] = None,
    ) -> ExtractionResult:
        """Run extraction without producing crop payloads."""
        options = replace(options or ExtractionOptions(), detect_only=True)
        return self.extract(image_bytes, mime_type, options)

    def crop(
        self,
        image_bytes: bytes,
        mime_type: str,
        box: BoundingBox,
        padding: Optional[int] = None,
    ) -> CroppedImage:
        """
        Crop one box out of an encoded image.

        The box is interpreted against the decoded image size.

        Raises:
            DecodeError: If the image cannot be decoded
            CropError: If the box yields no usable crop
        """
        raster = decode_image(image_bytes, mime_type)
        box = replace(box, image_width=raster.width, image_height=raster.height)
        pad = self.settings.crop_padding if padding is None else padding
        return crop_region(raster, box, pad, self.settings.crop_format)

    def refine(
        self,
        image_bytes: bytes,
        box: BoundingBox,
        threshold: int = DEFAULT_EDGE_THRESHOLD,
        mime_type: str = "image/png",
    ) -> BoundingBox:
        """Snap box to nearby edges; the input box comes back unchanged if decoding fails."""
        try:
            raster = decode_image(image_bytes, mime_type)
        except DecodeError as exc:
            logger.warning(f"Refinement skipped: {exc}")
            return box
        box = replace(box, image_width=raster.width, image_height=raster.height)
        return refine_bounds(raster, box, threshold)

    def extract_many(self, jobs: Iterable[ExtractionJob]) -> List[ExtractionResult]:
        """Extract several images on a thread pool; results keep the input order."""
        jobs = list(jobs)
        if not jobs:
            return []

        workers = max(1, min(self.settings.max_workers, len(jobs)))
        logger.info(f"Extracting {len(jobs)} images with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda job: self.extract(job.image_bytes, job.mime_type, job.options), jobs))

    def _materialize(self, raster: RasterBuffer, plan: ModePlan, options: ExtractionOptions) -> List[ExtractedRegion]:
        if plan.padding is not None:
            padding = plan.padding
        elif options.padding is not None:
            padding = options.padding
        else:
            padding = self.settings.crop_padding
        extension = extension_for(self.settings.crop_format)

        regions: List[ExtractedRegion] = []
        for candidate in plan.candidates:
            box = candidate.box.clamped()
            if box is None:
                logger.debug(f"Dropping invalid region {candidate.box.as_tuple()}")
                continue
            if box.width < plan.min_side or box.height < plan.min_side:
                logger.debug(f"Dropping region smaller than {plan.min_side}px: {box.as_tuple()}")
                continue

            candidate = candidate.with_box(box)
            filename = f"{options.mode.value}-{len(regions) + 1}-{_slug(candidate.label)}.{extension}"

            if options.detect_only:
                regions.append(ExtractedRegion(candidate, None, filename, box.width, box.height))
                continue

            try:
                cropped = crop_region(raster, box, padding, self.settings.crop_format, plan.min_side)
            except CropError as exc:
                logger.warning(f"Skipping region {box.as_tuple()}: {exc}")
                continue
            regions.append(ExtractedRegion(candidate, cropped.data, filename, cropped.width, cropped.height))

        return regions
