"""End-to-end tests for the extraction service and its detection modes."""

import io

import pytest
from PIL import Image

from tessera.config import CropMode, ExtractionOptions, Settings
from tessera.extraction import service
from tessera.extraction.crop import CropError, crop_region
from tessera.extraction.detectors import SeedRegion, StaticDetector
from tessera.extraction.modes import ModePlan
from tessera.extraction.service import ExtractionJob, RegionExtractor
from tessera.regions.model import BoundingBox, Provenance, RegionCandidate
from tests.helpers.image_factory import (
    BLACK,
    BLUE,
    RED,
    blank,
    checker_rect,
    fill_rect,
    gray16_square_png,
    oversized_png_header,
    png_bytes,
    red_square_png,
)


def image_size(data: bytes):
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def black_rect_png() -> bytes:
    return png_bytes(fill_rect(blank(200, 200), 50, 50, 60, 40, BLACK))


def run(image_bytes, detector=None, settings=None, **options):
    extractor = RegionExtractor(detector=detector, settings=settings)
    return extractor.extract(image_bytes, "image/png", ExtractionOptions(**options))


class TestContourMode:
    def test_single_icon(self):
        result = run(red_square_png())

        assert result.success
        assert result.error_message is None
        assert result.total_found == 1
        region = result.regions[0]
        assert region.box.as_tuple() == (80, 80, 40, 40)
        assert region.label == "icon"
        assert region.provenance is Provenance.CONTOUR
        assert region.confidence == 95
        assert region.description == "Icon (40x40)"
        assert region.suggested_filename == "contour-1-icon.png"
        assert image_size(region.image_data) == (44, 44)
        assert result.summary == "Detected 1 regions via contour detection"
        assert (result.source_width, result.source_height) == (200, 200)

    def test_padding_option(self):
        result = run(red_square_png(), padding=0)
        assert image_size(result.regions[0].image_data) == (40, 40)

    def test_settings_padding(self):
        result = run(red_square_png(), settings=Settings(crop_padding=5))
        assert image_size(result.regions[0].image_data) == (50, 50)

    def test_crop_format_sets_extension(self):
        result = run(red_square_png(), settings=Settings(crop_format="jpeg"))
        region = result.regions[0]
        assert region.suggested_filename == "contour-1-icon.jpg"
        with Image.open(io.BytesIO(region.image_data)) as img:
            assert img.format == "JPEG"

    def test_min_size_filters_small_regions(self):
        result = run(red_square_png(), min_component_size=50)
        assert not result.success
        assert result.error_message is None
        assert result.summary == "No regions detected via contour detection"


class TestGridMode:
    def test_remainder_goes_to_last_row_and_column(self):
        result = run(png_bytes(blank(101, 101)), mode=CropMode.GRID, rows=2, columns=2)

        assert [r.box.as_tuple() for r in result.regions] == [
            (0, 0, 50, 50),
            (50, 0, 51, 50),
            (0, 50, 50, 51),
            (50, 50, 51, 51),
        ]
        assert [r.description for r in result.regions] == [
            "Grid cell [0,0]", "Grid cell [0,1]", "Grid cell [1,0]", "Grid cell [1,1]",
        ]
        assert all(r.confidence == 100 and r.label == "grid-cell" for r in result.regions)
        assert result.regions[1].suggested_filename == "grid-2-grid-cell.png"
        assert result.summary == "Extracted 2x2 grid (4 cells)"

    def test_tiles_are_not_padded(self):
        result = run(png_bytes(blank(101, 101)), mode=CropMode.GRID)
        assert [image_size(r.image_data) for r in result.regions] == [(50, 50), (51, 50), (50, 51), (51, 51)]

    def test_tiles_cover_image(self):
        result = run(png_bytes(blank(97, 61)), mode=CropMode.GRID, rows=3, columns=4)
        assert result.total_found == 12
        assert sum(r.box.area for r in result.regions) == 97 * 61

    def test_tiles_smaller_than_region_floor_are_kept(self):
        result = run(png_bytes(blank(6, 6)), mode=CropMode.GRID, rows=2, columns=2)
        assert result.success
        assert [r.box.as_tuple() for r in result.regions] == [
            (0, 0, 3, 3), (3, 0, 3, 3), (0, 3, 3, 3), (3, 3, 3, 3),
        ]
        assert [image_size(r.image_data) for r in result.regions] == [(3, 3)] * 4

    def test_one_pixel_rows(self):
        result = run(png_bytes(blank(8, 3)), mode=CropMode.GRID, rows=3, columns=2)
        assert result.total_found == 6
        assert all(r.box.height == 1 for r in result.regions)
        assert result.summary == "Extracted 3x2 grid (6 cells)"


class TestUniformImage:
    @pytest.mark.parametrize("mode", [
        CropMode.CONTOUR,
        CropMode.COMPONENTS,
        CropMode.FLOOD_FILL,
        CropMode.UI_CARDS,
    ])
    def test_nothing_detected(self, mode):
        result = run(png_bytes(blank(120, 120)), mode=mode)
        assert not result.success
        assert result.error_message is None
        assert result.regions == []
        assert result.summary

    def test_sections_fall_back_to_full_image(self):
        result = run(png_bytes(blank(120, 120)), mode=CropMode.SECTIONS)
        assert result.success
        [region] = result.regions
        assert region.box.as_tuple() == (0, 0, 120, 120)
        assert region.confidence == 100
        assert region.description == "Full image (no sections detected)"


class TestSectionsMode:
    def test_color_bands(self):
        canvas = blank(100, 200)
        fill_rect(canvas, 0, 60, 100, 60, (128, 128, 128))
        result = run(png_bytes(canvas), mode=CropMode.SECTIONS)

        assert [r.box.as_tuple() for r in result.regions] == [
            (0, 0, 100, 30),
            (0, 30, 100, 60),
            (0, 90, 100, 110),
        ]
        assert [r.description for r in result.regions] == ["Section 1", "Section 2", "Section 3"]
        assert result.summary == "Detected 3 horizontal sections"


class TestComponentsMode:
    def test_textured_patch(self):
        canvas = checker_rect(blank(200, 200), 60, 60, 60, 60)
        result = run(png_bytes(canvas), mode=CropMode.COMPONENTS)

        assert result.total_found == 1
        region = result.regions[0]
        assert region.provenance is Provenance.COMPONENT
        assert region.confidence == 85
        box = region.box
        assert box.x <= 60 and box.y <= 60
        assert box.right >= 120 and box.bottom >= 120
        assert box.x >= 50 and box.right <= 130


class TestFloodFillMode:
    def test_two_squares(self):
        canvas = blank(200, 200)
        fill_rect(canvas, 40, 40, 50, 50, RED)
        fill_rect(canvas, 120, 120, 30, 30, BLUE)
        result = run(png_bytes(canvas), mode=CropMode.FLOOD_FILL)

        assert [r.box.as_tuple() for r in result.regions] == [(40, 40, 50, 50), (120, 120, 30, 30)]
        assert [r.label for r in result.regions] == ["icon", "icon"]
        assert all(r.provenance is Provenance.FLOOD_FILL for r in result.regions)
        assert result.regions[0].suggested_filename == "flood-fill-1-icon.png"


class TestUiCardsMode:
    def test_solid_card(self):
        canvas = fill_rect(blank(300, 200), 40, 40, 120, 80, (200, 220, 255))
        result = run(png_bytes(canvas), mode=CropMode.UI_CARDS)

        [region] = result.regions
        assert region.box.as_tuple() == (34, 34, 132, 92)
        assert region.label == "card"
        assert region.confidence == 92
        assert region.provenance is Provenance.SOLID_COLOR
        assert result.summary == "Detected 1 UI cards/widgets"


class TestSmartDetectMode:
    def detector(self, **seed):
        return StaticDetector([SeedRegion(**seed)])

    def test_requires_detector(self):
        result = run(red_square_png(), mode=CropMode.SMART_DETECT)
        assert not result.success
        assert result.error_message == "Smart Detect extraction failed: No external detector configured"

    def test_seed_is_refined(self):
        detector = self.detector(x=50, y=50, width=60, height=40, label="button")
        result = run(black_rect_png(), detector=detector, mode=CropMode.SMART_DETECT)

        [region] = result.regions
        box = region.box
        assert abs(box.x - 49) <= 1 and abs(box.y - 49) <= 1
        assert abs(box.right - 110) <= 1 and abs(box.bottom - 90) <= 1
        assert region.provenance is Provenance.EDGE_REFINED
        assert region.label == "button"
        assert region.description == "Detected region"
        assert region.suggested_filename == "smart-detect-1-button.png"

    def test_no_refine_keeps_seed_box(self):
        detector = self.detector(x=50, y=50, width=60, height=40, label="button", description="Buy")
        result = run(black_rect_png(), detector=detector, mode=CropMode.SMART_DETECT,
                     refine_with_edge_detection=False)

        [region] = result.regions
        assert region.box.as_tuple() == (50, 50, 60, 40)
        assert region.provenance is Provenance.EXTERNAL_SEED
        assert region.description == "Buy"
        assert region.confidence == 80

    def test_normalized_seed(self):
        detector = self.detector(nx=0.25, ny=0.25, nw=0.3, nh=0.2, label="panel")
        result = run(black_rect_png(), detector=detector, mode=CropMode.SMART_DETECT,
                     refine_with_edge_detection=False)
        assert result.regions[0].box.as_tuple() == (50, 50, 60, 40)

    def test_seed_outside_image_is_dropped(self):
        detector = self.detector(x=500, y=500, width=10, height=10)
        result = run(black_rect_png(), detector=detector, mode=CropMode.SMART_DETECT)
        assert not result.success
        assert result.error_message is None
        assert result.summary == "External detector returned no usable regions"

    def test_seed_is_clamped(self):
        detector = self.detector(x=180, y=180, width=50, height=50, label="corner")
        result = run(black_rect_png(), detector=detector, mode=CropMode.SMART_DETECT,
                     refine_with_edge_detection=False)
        assert result.regions[0].box.as_tuple() == (180, 180, 20, 20)


class TestHybridMode:
    def test_contour_only_without_detector(self):
        result = run(red_square_png(), mode=CropMode.HYBRID)

        [region] = result.regions
        assert region.box.as_tuple() == (79, 79, 41, 41)
        assert region.description == "Icon (40x40) [contour]"
        assert region.provenance is Provenance.EDGE_REFINED

    def test_external_seed_suppresses_overlapping_contour(self):
        detector = StaticDetector([SeedRegion(x=80, y=80, width=40, height=40, label="logo", description="Brand")])
        result = run(red_square_png(), detector=detector, mode=CropMode.HYBRID)

        [region] = result.regions
        assert region.description == "Brand [external]"
        assert region.label == "logo"

    def test_external_and_contour_regions(self):
        detector = StaticDetector([SeedRegion(x=10, y=10, width=30, height=30, label="badge")])
        result = run(red_square_png(), detector=detector, mode=CropMode.HYBRID)

        assert [r.description for r in result.regions] == ["Detected region [external]", "Icon (40x40) [contour]"]


class TestService:
    def test_decode_failure(self):
        result = RegionExtractor().extract(b"definitely not an image", "image/png")
        assert not result.success
        assert result.error_message.startswith("Failed to decode source image:")

    def test_oversized_image_is_a_decode_failure(self):
        result = RegionExtractor().extract(oversized_png_header(), "image/png")
        assert not result.success
        assert result.error_message.startswith("Failed to decode source image:")

    def test_sixteen_bit_screenshot(self):
        result = run(gray16_square_png(), min_component_size=10, refine_with_edge_detection=False)
        assert result.success
        [region] = result.regions
        box = region.box
        assert abs(box.x - 15) <= 2 and abs(box.y - 15) <= 2
        assert abs(box.right - 35) <= 2 and abs(box.bottom - 35) <= 2

    def test_failed_crop_skips_only_that_region(self, monkeypatch):
        def two_boxes(ctx):
            size = (ctx.raster.width, ctx.raster.height)
            return ModePlan(candidates=[
                RegionCandidate(BoundingBox(10, 10, 40, 40, *size), Provenance.CONTOUR, label="icon"),
                RegionCandidate(BoundingBox(100, 100, 40, 40, *size), Provenance.CONTOUR, label="icon"),
            ])

        def crop_or_fail(raster, box, *args, **kwargs):
            if box.x == 100:
                raise CropError("encoder rejected region")
            return crop_region(raster, box, *args, **kwargs)

        monkeypatch.setattr(service, "crop_region", crop_or_fail)
        extractor = RegionExtractor(strategies={CropMode.CONTOUR: two_boxes})
        result = extractor.extract(red_square_png())

        assert result.success
        [region] = result.regions
        assert region.box.as_tuple() == (10, 10, 40, 40)
        assert region.suggested_filename == "contour-1-icon.png"

    def test_unsupported_crop_format_is_rejected_up_front(self):
        with pytest.raises(ValueError, match="Unsupported crop format"):
            RegionExtractor(settings=Settings(crop_format="gif"))

    def test_non_image_mime_type(self):
        result = RegionExtractor().extract(red_square_png(), "text/plain")
        assert result.error_message.startswith("Failed to decode source image:")

    def test_detect_only_has_no_payloads(self):
        result = run(red_square_png(), detect_only=True)
        [region] = result.regions
        assert region.image_data is None
        assert region.base64_data is None
        assert region.suggested_filename == "contour-1-icon.png"
        assert (region.width, region.height) == (40, 40)

    def test_identify(self):
        result = RegionExtractor().identify(red_square_png())
        assert result.success
        assert all(r.image_data is None for r in result.regions)

    def test_strategy_exception_becomes_failure(self):
        def boom(ctx):
            raise RuntimeError("boom")

        extractor = RegionExtractor(strategies={CropMode.CONTOUR: boom})
        result = extractor.extract(red_square_png())
        assert not result.success
        assert result.error_message == "Contour extraction failed: boom"

    def test_missing_strategy(self):
        extractor = RegionExtractor(strategies={})
        result = extractor.extract(red_square_png(), options=ExtractionOptions(mode=CropMode.GRID))
        assert result.error_message == "Unsupported crop mode: grid"

    def test_extract_many_keeps_order(self):
        jobs = [
            ExtractionJob(png_bytes(blank(60, 60))),
            ExtractionJob(red_square_png()),
            ExtractionJob(b"garbage"),
        ]
        results = RegionExtractor(settings=Settings(max_workers=3)).extract_many(jobs)

        assert [r.success for r in results] == [False, True, False]
        assert results[0].error_message is None
        assert results[2].error_message is not None

    def test_extract_many_empty(self):
        assert RegionExtractor().extract_many([]) == []

    def test_to_dict(self):
        data = run(red_square_png()).to_dict()
        assert data["mode"] == "contour"
        assert data["total_found"] == 1
        assert data["regions"][0]["has_image_data"] is True


class TestCropAndRefine:
    def test_crop_uses_decoded_size(self):
        cropped = RegionExtractor().crop(red_square_png(), "image/png", BoundingBox(80, 80, 40, 40, 1, 1))
        assert (cropped.width, cropped.height) == (44, 44)
        assert image_size(cropped.data) == (44, 44)

    def test_crop_explicit_padding(self):
        cropped = RegionExtractor().crop(red_square_png(), "image/png", BoundingBox(80, 80, 40, 40, 200, 200), padding=0)
        assert cropped.box.as_tuple() == (80, 80, 40, 40)

    def test_crop_too_small(self):
        with pytest.raises(CropError):
            RegionExtractor().crop(red_square_png(), "image/png", BoundingBox(0, 0, 1, 1, 200, 200))

    def test_refine(self):
        refined = RegionExtractor().refine(black_rect_png(), BoundingBox(45, 46, 70, 50, 200, 200))
        assert abs(refined.x - 50) <= 1
        assert abs(refined.bottom - 90) <= 1

    def test_refine_with_undecodable_image_returns_box(self):
        box = BoundingBox(10, 10, 20, 20, 100, 100)
        assert RegionExtractor().refine(b"nope", box) == box
