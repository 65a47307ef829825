"""Exceptions raised while building or converting bitmaps."""

from __future__ import annotations


class SfcImageError(Exception):
    """Base class for conversion errors."""


class DecodeError(SfcImageError):
    """Raised when PNG data cannot be decoded."""


class EncodeError(SfcImageError):
    """Raised when pixel data cannot be encoded as PNG."""


class EmptyPaletteError(SfcImageError):
    """Raised when a palette or subpalette provides no colors."""


class ColorNotInPaletteError(SfcImageError):
    """Raised when a reduced pixel color has no exact match in the palette."""

    def __init__(self, color: int, index: int, width: int, mode: str):
        self.color = color
        self.index = index
        self.x = index % width if width else 0
        self.y = index // width if width else 0
        self.mode = mode
        r, g, b, a = (color >> shift & 0xFF for shift in (0, 8, 16, 24))
        super().__init__(
            f"Color not in palette: ({r},{g},{b},{a}) at ({self.x},{self.y}) in mode {mode}"
        )


class NoIndexedDataError(SfcImageError):
    """Raised when indexed pixel data is requested from an RGBA-only bitmap."""
