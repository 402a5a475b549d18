"""Image codec boundary: bytes <-> RasterBuffer via Pillow."""

import io
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from .buffer import RasterBuffer
from ..logging import get_logger

logger = get_logger(__name__)

# Pillow format name -> file extension for crop payloads
FORMAT_EXTENSIONS = {
    "PNG": "png",
    "WEBP": "webp",
    "TIFF": "tiff",
    "BMP": "bmp",
    "JPEG": "jpg",
}

_LOSSLESS_RGBA = {"PNG", "WEBP", "TIFF"}


_WIDE_GRAY_MODES = {"I;16", "I;16B", "I;16L", "I;16N", "I", "F"}


def _gray_to_uint8(img: Image.Image) -> np.ndarray:
    """Scale a 16-bit, 32-bit integer or float grayscale image down to 8 bits."""
    values = np.array(img)
    if img.mode == "F":
        return np.clip(values, 0, 255).astype(np.uint8)
    # 32-bit "I" images from PNG/TIFF carry 16-bit samples
    return (np.clip(values, 0, 0xFFFF).astype(np.uint32) >> 8).astype(np.uint8)


class DecodeError(Exception):
    """Raised when image bytes cannot be turned into a RasterBuffer."""


class EncodeError(Exception):
    """Raised when a RasterBuffer region cannot be encoded."""


def decode_image(data: bytes, mime_type: Optional[str] = None) -> RasterBuffer:
    """
    Decode any Pillow-readable raster image into an RGBA RasterBuffer.

    Args:
        data: Encoded image bytes
        mime_type: Declared MIME type; must be an image/* type when given

    Raises:
        DecodeError: If the MIME type is not an image or decoding fails
    """
    if mime_type and not mime_type.lower().startswith("image/"):
        raise DecodeError(f"Unsupported MIME type: {mime_type}")
    if not data:
        raise DecodeError("Image data is empty")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode in _WIDE_GRAY_MODES:
                raster = RasterBuffer.from_array(_gray_to_uint8(img))
            else:
                if img.mode != "RGBA":
                    img = img.convert("RGBA")
                raster = RasterBuffer(np.array(img, dtype=np.uint8))
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"Image is too large to decode: {exc}") from exc
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc

    logger.debug(f"Decoded {mime_type or 'image'} to {raster.width}x{raster.height} raster")
    return raster


def encode_image(pixels: np.ndarray, fmt: str = "png") -> bytes:
    """
    Encode an (H, W, 4) RGBA array.

    Formats without an alpha channel (JPEG) are flattened to RGB.

    Raises:
        EncodeError: If Pillow cannot encode the pixels
    """
    pil_format = pil_format_name(fmt)
    if not is_supported_format(fmt):
        raise EncodeError(f"Unsupported output format: {fmt}")

    try:
        img = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
        if pil_format not in _LOSSLESS_RGBA and pil_format != "BMP":
            img = img.convert("RGB")
        buffer = io.BytesIO()
        img.save(buffer, format=pil_format)
        return buffer.getvalue()
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Failed to encode {pil_format}: {exc}") from exc


def pil_format_name(fmt: str) -> str:
    """Pillow format name for fmt, e.g. "jpg" -> "JPEG"."""
    pil_format = fmt.strip().upper()
    return "JPEG" if pil_format == "JPG" else pil_format


def is_supported_format(fmt: str) -> bool:
    return pil_format_name(fmt) in FORMAT_EXTENSIONS


def extension_for(fmt: str) -> str:
    return FORMAT_EXTENSIONS.get(pil_format_name(fmt), fmt.lower())
