"""Pixel storage and the image codec boundary."""

from .buffer import RasterBuffer, Color, colors_similar, colors_near, color_distance, luma
from .codec import decode_image, encode_image, DecodeError, EncodeError

__all__ = [
    "RasterBuffer",
    "Color",
    "colors_similar",
    "colors_near",
    "color_distance",
    "luma",
    "decode_image",
    "encode_image",
    "DecodeError",
    "EncodeError",
]
