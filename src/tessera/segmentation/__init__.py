"""
Model-free segmentation primitives.

Background estimation, foreground and interest masks, connected components,
edge refinement and horizontal section detection.
"""

from .background import estimate_background_color, sample_border_pixels
from .mask import build_foreground_mask, dilate_mask, interest_map
from .components import (
    flood_fill_mask,
    flood_fill_color,
    mask_components,
    tighten_bounds,
    find_rectangular_regions,
    content_ratio,
    new_visited,
)
from .ui import detect_ui_components, is_likely_text_only
from .edges import find_edge, refine_bounds
from .sections import find_horizontal_dividers, section_bounds_from_dividers

__all__ = [
    'estimate_background_color',
    'sample_border_pixels',
    'build_foreground_mask',
    'dilate_mask',
    'interest_map',
    'flood_fill_mask',
    'flood_fill_color',
    'mask_components',
    'tighten_bounds',
    'find_rectangular_regions',
    'content_ratio',
    'new_visited',
    'detect_ui_components',
    'is_likely_text_only',
    'find_edge',
    'refine_bounds',
    'find_horizontal_dividers',
    'section_bounds_from_dividers',
]
