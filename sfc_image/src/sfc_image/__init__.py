"""Retro-console image model.

This package loads PNG files of any color type into canonical 8-bit RGBA
bitmaps, binds them to console palettes as indexed pixel data, and slices
them into tiles. It can be invoked through the CLI (``python -m sfc_image``)
or imported directly.
"""

from .bitmap import SHEET_WIDTH, Bitmap, IndexedBitmap, SliceOptions
from .color import TRANSPARENT_COLOR, Mode, normalize_color, pack_rgba, reduce_color, unpack_rgba
from .errors import (
    ColorNotInPaletteError,
    DecodeError,
    EmptyPaletteError,
    EncodeError,
    NoIndexedDataError,
    SfcImageError,
)
from .palette import Palette, Subpalette
from .tiles import Tile, Tileset

__all__ = [
    "SHEET_WIDTH",
    "TRANSPARENT_COLOR",
    "Bitmap",
    "ColorNotInPaletteError",
    "DecodeError",
    "EmptyPaletteError",
    "EncodeError",
    "IndexedBitmap",
    "Mode",
    "NoIndexedDataError",
    "Palette",
    "SfcImageError",
    "SliceOptions",
    "Subpalette",
    "Tile",
    "Tileset",
    "normalize_color",
    "pack_rgba",
    "reduce_color",
    "unpack_rgba",
]
