"""Tests for background color estimation."""

import numpy as np
from hypothesis import given, settings, strategies as st

from tessera.raster.buffer import RasterBuffer
from tessera.segmentation.background import estimate_background_color, quantize, sample_border_pixels
from tests.helpers.image_factory import blank, fill_rect, raster_of, RED, WHITE


class TestBackgroundEstimation:
    def test_uniform_image(self):
        assert estimate_background_color(raster_of(blank(50, 40, (30, 60, 90)))) == (30, 60, 90)

    def test_single_pixel(self):
        assert estimate_background_color(RasterBuffer.filled(1, 1, (7, 8, 9))) == (7, 8, 9)

    def test_centre_content_does_not_matter(self):
        canvas = fill_rect(blank(200, 200), 20, 20, 160, 160, RED)
        assert estimate_background_color(raster_of(canvas)) == WHITE

    def test_dominant_border_color_wins(self):
        # Left column red, rest of the border white
        canvas = fill_rect(blank(100, 100), 0, 0, 1, 100, RED)
        assert estimate_background_color(raster_of(canvas)) == WHITE

    def test_noise_inside_a_bucket_is_absorbed(self):
        canvas = blank(60, 60, (200, 200, 200))
        canvas[0, ::2] = (203, 205, 201)
        assert quantize(estimate_background_color(raster_of(canvas))) == (200, 200, 200)

    def test_deterministic(self):
        rng = np.random.default_rng(3)
        raster = raster_of(rng.integers(0, 256, size=(30, 40, 3), dtype=np.uint8))
        assert estimate_background_color(raster) == estimate_background_color(raster)

    @given(
        seed=st.integers(min_value=0, max_value=10_000),
        width=st.integers(min_value=1, max_value=60),
        height=st.integers(min_value=1, max_value=60),
    )
    @settings(max_examples=50, deadline=None)
    def test_result_is_a_sampled_border_pixel(self, seed, width, height):
        rng = np.random.default_rng(seed)
        raster = raster_of(rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8))

        background = estimate_background_color(raster)
        samples = sample_border_pixels(raster)
        assert background in samples
