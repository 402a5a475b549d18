"""Tests for horizontal divider and section detection."""

from tessera.segmentation.sections import find_horizontal_dividers, section_bounds_from_dividers
from tests.helpers.image_factory import BLACK, WHITE, blank, fill_rect, raster_of


def striped_rows(canvas, top, bottom):
    """Alternate black/white in 5px column blocks so the rows are not uniform."""
    for x in range(0, canvas.shape[1], 10):
        canvas[top:bottom, x:x + 5] = BLACK
    return canvas


class TestDividers:
    def test_color_bands_produce_run_midpoints(self):
        canvas = blank(100, 200)
        fill_rect(canvas, 0, 60, 100, 60, (128, 128, 128))
        assert find_horizontal_dividers(raster_of(canvas)) == [30, 90]

    def test_gap_between_content_blocks(self):
        canvas = blank(100, 130)
        striped_rows(canvas, 0, 50)
        striped_rows(canvas, 80, 130)
        assert find_horizontal_dividers(raster_of(canvas)) == [65]

    def test_short_gap_is_ignored(self):
        canvas = blank(100, 100)
        striped_rows(canvas, 0, 50)
        striped_rows(canvas, 54, 100)
        assert find_horizontal_dividers(raster_of(canvas)) == []

    def test_uniform_image_has_no_dividers(self):
        assert find_horizontal_dividers(raster_of(blank(80, 80, WHITE))) == []


class TestSectionBounds:
    def test_sections_span_full_width(self):
        sections = section_bounds_from_dividers([30, 90], 100, 200)
        assert [s.as_tuple() for s in sections] == [
            (0, 0, 100, 30),
            (0, 30, 100, 60),
            (0, 90, 100, 110),
        ]

    def test_no_dividers_is_whole_image(self):
        sections = section_bounds_from_dividers([], 100, 100)
        assert [s.as_tuple() for s in sections] == [(0, 0, 100, 100)]

    def test_dividers_near_edges_are_not_sections(self):
        sections = section_bounds_from_dividers([10, 50, 190], 100, 200)
        assert [s.as_tuple() for s in sections] == [(0, 10, 100, 40), (0, 50, 100, 140)]

    def test_tiny_image_falls_back_to_full_image(self):
        sections = section_bounds_from_dividers([], 40, 15)
        assert [s.as_tuple() for s in sections] == [(0, 0, 40, 15)]

    def test_unsorted_dividers(self):
        sections = section_bounds_from_dividers([90, 30], 100, 200)
        assert len(sections) == 3
