from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "sfc_image/src"))

from sfc_image.bitmap import Bitmap, IndexedBitmap
from sfc_image.color import TRANSPARENT_COLOR, Mode, from_rgba, pack_rgba
from sfc_image.errors import ColorNotInPaletteError, EmptyPaletteError
from sfc_image.palette import Subpalette

MAGENTA = pack_rgba(255, 0, 255)
WHITE = pack_rgba(255, 255, 255)
RED = pack_rgba(255, 0, 0)
CLEAR_GREEN = pack_rgba(0, 255, 0, 0)


def _bitmap(width: int, height: int, colors: list) -> Bitmap:
    return Bitmap(width, height, from_rgba(colors))


def test_pixels_are_bound_to_palette_indices() -> None:
    source = _bitmap(2, 2, [WHITE, CLEAR_GREEN, RED, WHITE])
    indexed = IndexedBitmap.from_bitmap(source, Subpalette([MAGENTA, WHITE, RED], Mode.SNES))

    assert indexed.indexed_data() == [1, 0, 2, 1]
    assert indexed.palette == [MAGENTA, WHITE, RED]
    assert indexed.rgba_data() == [WHITE, TRANSPARENT_COLOR, RED, WHITE]
    assert str(indexed) == "2x2, indexed color"


def test_transparent_pixels_use_index_zero_regardless_of_palette() -> None:
    source = _bitmap(2, 1, [CLEAR_GREEN, pack_rgba(1, 2, 3, 0x10)])
    indexed = IndexedBitmap.from_bitmap(source, Subpalette([RED, WHITE], Mode.SNES))

    assert indexed.indexed_data() == [0, 0]
    assert indexed.rgba_data() == [TRANSPARENT_COLOR, TRANSPARENT_COLOR]
    assert indexed.palette[0] == RED


def test_every_opaque_pixel_matches_its_palette_entry() -> None:
    colors = [RED, WHITE, MAGENTA, CLEAR_GREEN, WHITE, RED]
    indexed = IndexedBitmap.from_bitmap(_bitmap(3, 2, colors), Subpalette([MAGENTA, RED, WHITE], Mode.GBA))

    for i, index in enumerate(indexed.indexed_pixels):
        if colors[i] == CLEAR_GREEN:
            assert (index, indexed.rgba_color_at(i)) == (0, TRANSPARENT_COLOR)
        else:
            assert indexed.rgba_color_at(i) == indexed.palette[index]


def test_duplicate_palette_colors_resolve_to_first_occurrence() -> None:
    indexed = IndexedBitmap.from_bitmap(_bitmap(1, 1, [WHITE]), Subpalette([MAGENTA, WHITE, WHITE], Mode.SNES))

    assert indexed.indexed_data() == [1]


def test_colors_are_matched_after_reduction() -> None:
    source = _bitmap(1, 1, [pack_rgba(250, 3, 4)])
    indexed = IndexedBitmap.from_bitmap(source, Subpalette([MAGENTA, pack_rgba(248, 0, 0)], Mode.SNES))

    assert indexed.indexed_data() == [1]
    assert indexed.palette[1] == pack_rgba(247, 0, 0)
    assert indexed.rgba_data() == [pack_rgba(247, 0, 0)]


def test_color_not_in_palette_aborts() -> None:
    source = _bitmap(2, 2, [WHITE, WHITE, WHITE, pack_rgba(0, 0, 255)])

    with pytest.raises(ColorNotInPaletteError) as excinfo:
        IndexedBitmap.from_bitmap(source, Subpalette([MAGENTA, WHITE], Mode.SNES))

    assert (excinfo.value.x, excinfo.value.y) == (1, 1)
    assert excinfo.value.mode == "snes"
    assert "Color not in palette" in str(excinfo.value)


def test_empty_subpalette_is_rejected() -> None:
    with pytest.raises(EmptyPaletteError):
        IndexedBitmap.from_bitmap(_bitmap(1, 1, [WHITE]), Subpalette([], Mode.SNES))


def test_indexed_bitmap_refuses_rgba_drawing() -> None:
    indexed = IndexedBitmap.from_bitmap(_bitmap(2, 1, [WHITE, RED]), Subpalette([MAGENTA, WHITE, RED]))

    with pytest.raises(TypeError):
        indexed.blit([MAGENTA], 0, 0, 1)
    with pytest.raises(TypeError):
        indexed.set_pixel(MAGENTA, 0, 0)

    plain = indexed.plain()
    plain.blit([MAGENTA], 0, 0, 1)
    assert type(plain) is Bitmap
    assert plain.rgba_data() == [MAGENTA, RED]
    assert plain.indexed_pixels == b""
    assert indexed.rgba_data() == [WHITE, RED]
