"""Manifest and crop file output."""

from .manifest import (
    Manifest,
    ManifestItem,
    build_manifest,
    save_crops,
    write_manifest_json,
    load_manifest_json,
)

__all__ = [
    'Manifest',
    'ManifestItem',
    'build_manifest',
    'save_crops',
    'write_manifest_json',
    'load_manifest_json',
]
