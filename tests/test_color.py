from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "sfc_image/src"))

from sfc_image.color import (
    TRANSPARENT_COLOR,
    Mode,
    from_rgba,
    normalize_color,
    pack_rgba,
    reduce_color,
    to_rgba,
    unpack_rgba,
)
from sfc_image.errors import SfcImageError


def test_packing_is_little_endian() -> None:
    assert pack_rgba(1, 2, 3, 4) == 0x04030201
    assert unpack_rgba(0x04030201) == (1, 2, 3, 4)
    assert pack_rgba(1, 2, 3) >> 24 == 0xFF


def test_byte_buffer_conversion() -> None:
    colors = [pack_rgba(1, 2, 3, 4), pack_rgba(255, 0, 128, 255)]
    data = from_rgba(colors)
    assert bytes(data) == bytes([1, 2, 3, 4, 255, 0, 128, 255])
    assert to_rgba(data) == colors


def test_transparent_sentinel() -> None:
    assert TRANSPARENT_COLOR == 0
    assert reduce_color(pack_rgba(200, 100, 50, 0x7F), Mode.SNES) == TRANSPARENT_COLOR
    assert reduce_color(pack_rgba(200, 100, 50, 0x80), Mode.SNES) != TRANSPARENT_COLOR
    assert normalize_color(TRANSPARENT_COLOR, Mode.SNES) == TRANSPARENT_COLOR


def test_snes_reduces_to_five_bits() -> None:
    assert reduce_color(pack_rgba(255, 255, 255), Mode.SNES) == pack_rgba(31, 31, 31)
    assert normalize_color(pack_rgba(31, 31, 31), Mode.SNES) == pack_rgba(255, 255, 255)
    assert normalize_color(reduce_color(pack_rgba(8, 0, 0), Mode.SNES), Mode.SNES) == pack_rgba(8, 0, 0)
    assert normalize_color(reduce_color(pack_rgba(250, 3, 4), Mode.SNES), Mode.SNES) == pack_rgba(247, 0, 0)


def test_md_reduces_to_three_bits() -> None:
    assert reduce_color(pack_rgba(128, 255, 0), Mode.MD) == pack_rgba(4, 7, 0)
    assert normalize_color(pack_rgba(4, 7, 0), Mode.MD) == pack_rgba(146, 255, 0)


def test_gb_reduces_to_grey_levels() -> None:
    white = normalize_color(reduce_color(pack_rgba(255, 255, 255), Mode.GB), Mode.GB)
    assert white == pack_rgba(255, 255, 255)
    red = normalize_color(reduce_color(pack_rgba(255, 0, 0), Mode.GB), Mode.GB)
    assert red == pack_rgba(85, 85, 85)


def test_reduced_colors_are_opaque() -> None:
    assert unpack_rgba(reduce_color(pack_rgba(0, 0, 0, 0x90), Mode.GBA))[3] == 0xFF


def test_mode_parse() -> None:
    assert Mode.parse(" SNES ") is Mode.SNES
    assert Mode.parse("md") is Mode.MD
    with pytest.raises(SfcImageError):
        Mode.parse("nes")
