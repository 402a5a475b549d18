"""Tests for luma-gradient edge refinement."""

import numpy as np
from hypothesis import given, settings, strategies as st

from tessera.regions.model import BoundingBox
from tessera.segmentation.edges import find_edge, refine_bounds
from tests.helpers.image_factory import BLACK, blank, fill_rect, raster_of


def black_rect_raster():
    """200x200 white with a solid black 60x40 rectangle at (50, 50)."""
    return raster_of(fill_rect(blank(200, 200), 50, 50, 60, 40, BLACK))


class TestFindEdge:
    def test_first_and_last_vertical_edges(self):
        luma = black_rect_raster().luma()
        assert find_edge(luma, 30, 80, 40, 100, True, True, 30) == 49
        assert find_edge(luma, 80, 130, 40, 100, True, False, 30) == 110

    def test_horizontal_edges(self):
        luma = black_rect_raster().luma()
        assert find_edge(luma, 40, 120, 30, 70, False, True, 30) == 49
        assert find_edge(luma, 40, 120, 70, 110, False, False, 30) == 90

    def test_no_edge_in_flat_area(self):
        luma = black_rect_raster().luma()
        assert find_edge(luma, 120, 180, 120, 180, True, True, 30) is None

    def test_threshold_is_strict(self):
        luma = black_rect_raster().luma()
        assert find_edge(luma, 30, 80, 40, 100, True, True, 255) is None

    def test_empty_range(self):
        luma = black_rect_raster().luma()
        assert find_edge(luma, 50, 50, 0, 200, True, True, 30) is None


class TestRefineBounds:
    def test_snaps_loose_box_to_rectangle(self):
        raster = black_rect_raster()
        refined = refine_bounds(raster, BoundingBox(45, 46, 70, 50, 200, 200))
        assert abs(refined.x - 50) <= 1
        assert abs(refined.y - 50) <= 1
        assert abs(refined.right - 110) <= 1
        assert abs(refined.bottom - 90) <= 1

    def test_flat_image_keeps_box(self):
        raster = raster_of(blank(100, 100))
        original = BoundingBox(10, 20, 30, 40, 100, 100)
        assert refine_bounds(raster, original) == original

    def test_minimum_size(self):
        raster = raster_of(blank(100, 100))
        refined = refine_bounds(raster, BoundingBox(10, 10, 2, 1, 100, 100))
        assert refined.width >= 4 and refined.height >= 4

    def test_box_outside_image_is_returned_unchanged(self):
        raster = raster_of(blank(50, 50))
        outside = BoundingBox(80, 80, 10, 10, 50, 50)
        assert refine_bounds(raster, outside) == outside

    @given(
        seed=st.integers(min_value=0, max_value=10_000),
        x=st.integers(min_value=0, max_value=59),
        y=st.integers(min_value=0, max_value=49),
        w=st.integers(min_value=1, max_value=60),
        h=st.integers(min_value=1, max_value=50),
        threshold=st.integers(min_value=0, max_value=120),
    )
    @settings(max_examples=60, deadline=None)
    def test_stays_within_search_padding(self, seed, x, y, w, h, threshold):
        rng = np.random.default_rng(seed)
        canvas = rng.integers(0, 256, size=(50, 60, 3), dtype=np.uint8)
        w = min(w, 60 - x)
        h = min(h, 50 - y)
        original = BoundingBox(x, y, w, h, 60, 50)

        refined = refine_bounds(raster_of(canvas), original, threshold, search_padding=10)

        assert refined.x >= max(0, x - 10)
        assert refined.y >= max(0, y - 10)
        assert refined.right <= min(60, x + w + 10)
        assert refined.bottom <= min(50, y + h + 10)
        assert refined.width > 0 and refined.height > 0
