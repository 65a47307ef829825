"""Packed RGBA colors and console color reduction rules.

Colors are 32-bit integers packed little-endian: ``R | G<<8 | B<<16 | A<<24``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Tuple

from .errors import SfcImageError

Rgba = Tuple[int, int, int, int]

# Background / out-of-palette sentinel: zero alpha, RGB 0.
TRANSPARENT_COLOR = 0

# Pixels below this alpha reduce to the transparent sentinel.
ALPHA_THRESHOLD = 0x80

_PERCEIVED_LUMINANCE_WEIGHTS = (299, 587, 114)


class Mode(str, Enum):
    """Console color systems."""

    SNES = "snes"
    SNES_MODE7 = "snes_mode7"
    GB = "gb"
    GBC = "gbc"
    GBA = "gba"
    MD = "md"
    PCE = "pce"

    @classmethod
    def parse(cls, text: str) -> "Mode":
        try:
            return cls(text.strip().lower())
        except ValueError as exc:
            choices = ", ".join(mode.value for mode in cls)
            raise SfcImageError(f"Unknown mode: {text} (expected one of {choices})") from exc

    @property
    def channel_bits(self) -> int:
        return CHANNEL_BITS[self]

    @property
    def grayscale(self) -> bool:
        return self is Mode.GB


CHANNEL_BITS: Dict[Mode, int] = {
    Mode.SNES: 5,
    Mode.SNES_MODE7: 5,
    Mode.GB: 2,
    Mode.GBC: 5,
    Mode.GBA: 5,
    Mode.MD: 3,
    Mode.PCE: 3,
}


def pack_rgba(r: int, g: int, b: int, a: int = 0xFF) -> int:
    return (r & 0xFF) | (g & 0xFF) << 8 | (b & 0xFF) << 16 | (a & 0xFF) << 24


def unpack_rgba(color: int) -> Rgba:
    return (color & 0xFF, color >> 8 & 0xFF, color >> 16 & 0xFF, color >> 24 & 0xFF)


def rgba_color(color: int) -> int:
    """Return ``color`` as an unsigned 32-bit packed value."""
    return color & 0xFFFFFFFF


def to_rgba(data: bytes | bytearray) -> List[int]:
    """Pack a flat R,G,B,A byte buffer into a list of colors."""
    return [
        data[i] | data[i + 1] << 8 | data[i + 2] << 16 | data[i + 3] << 24
        for i in range(0, len(data) - len(data) % 4, 4)
    ]


def from_rgba(colors: Iterable[int]) -> bytearray:
    """Expand packed colors into a flat R,G,B,A byte buffer."""
    out = bytearray()
    for color in colors:
        out.extend(unpack_rgba(color))
    return out


def _scale_down(value: int, bits: int) -> int:
    maximum = (1 << bits) - 1
    return (value * maximum + 127) // 255


def _scale_up(value: int, bits: int) -> int:
    # Replicate the high bits into the low bits so full scale maps to 255.
    result = 0
    shift = 8
    while shift > 0:
        shift -= bits
        result |= value << shift if shift >= 0 else value >> -shift
    return result & 0xFF


def reduce_color(color: int, mode: Mode) -> int:
    """Reduce ``color`` to the channel depth of ``mode``.

    The result holds channel values in the reduced range (for example 0-31
    for 5-bit systems) with full alpha, or ``TRANSPARENT_COLOR`` when the
    source alpha is below ``ALPHA_THRESHOLD``.
    """
    r, g, b, a = unpack_rgba(color)
    if a < ALPHA_THRESHOLD:
        return TRANSPARENT_COLOR
    bits = mode.channel_bits
    if mode.grayscale:
        wr, wg, wb = _PERCEIVED_LUMINANCE_WEIGHTS
        level = _scale_down((r * wr + g * wg + b * wb + 500) // 1000, bits)
        return pack_rgba(level, level, level)
    return pack_rgba(_scale_down(r, bits), _scale_down(g, bits), _scale_down(b, bits))


def normalize_color(color: int, mode: Mode) -> int:
    """Scale a reduced color back up to 8 bits per channel."""
    if color == TRANSPARENT_COLOR:
        return TRANSPARENT_COLOR
    r, g, b, _a = unpack_rgba(color)
    bits = mode.channel_bits
    return pack_rgba(_scale_up(r, bits), _scale_up(g, bits), _scale_up(b, bits))


def format_color(color: int) -> str:
    r, g, b, a = unpack_rgba(color)
    return f"#{r:02x}{g:02x}{b:02x}{a:02x}"
