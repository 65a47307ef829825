"""In-memory bitmaps: PNG normalization, palette binding and tile slicing.

``Bitmap`` owns a flat 8-bit RGBA buffer. ``IndexedBitmap`` additionally
owns one palette index per pixel and guarantees that every RGBA pixel is the
expansion of its palette entry (index 0 doubles as the transparent pixel).
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Sequence

from . import codec
from .codec import ColorType
from .color import TRANSPARENT_COLOR, Mode, normalize_color, reduce_color, rgba_color, to_rgba
from .errors import ColorNotInPaletteError, DecodeError, EmptyPaletteError, EncodeError, NoIndexedDataError

if TYPE_CHECKING:
    from .palette import Palette, Subpalette
    from .tiles import Tileset

SHEET_WIDTH = 128
ROW_STEPS = ("height", "width")
OVERHANGS = ("wrap", "clip")


@dataclass
class SliceOptions:
    """Tile geometry used when slicing bitmaps and assembling sheets."""

    tile_width: int = 8
    tile_height: int = 8
    # "height" advances rows by the tile height; "width" reproduces the
    # legacy converters, which advanced rows by the tile width.
    row_step: str = "height"
    sheet_width: int = SHEET_WIDTH
    # What happens to tile columns past the right edge of a sheet: "wrap"
    # spills them into the next pixel row, "clip" drops them.
    overhang: str = "wrap"

    def validate(self) -> "SliceOptions":
        if self.tile_width <= 0 or self.tile_height <= 0:
            raise ValueError(f"Tile size must be positive: {self.tile_width}x{self.tile_height}")
        if self.row_step not in ROW_STEPS:
            raise ValueError(f"Unknown row step: {self.row_step}")
        if self.sheet_width <= 0:
            raise ValueError(f"Sheet width must be positive: {self.sheet_width}")
        if self.overhang not in OVERHANGS:
            raise ValueError(f"Unknown overhang: {self.overhang}")
        return self


def _div_ceil(a: int, b: int) -> int:
    return (a + b - 1) // b


def _write_color(buffer: bytearray, offset: int, color: int) -> None:
    if offset < 0 or offset + 4 > len(buffer):
        return
    buffer[offset] = color & 0xFF
    buffer[offset + 1] = color >> 8 & 0xFF
    buffer[offset + 2] = color >> 16 & 0xFF
    buffer[offset + 3] = color >> 24 & 0xFF


def _transparent_fill(pixel_count: int) -> bytearray:
    return bytearray(TRANSPARENT_COLOR.to_bytes(4, "little") * pixel_count)


class Bitmap:
    """An RGBA bitmap with optional indexed pixel data."""

    def __init__(
        self,
        width: int = 0,
        height: int = 0,
        pixels: bytes | bytearray | None = None,
        indexed_pixels: bytes | bytearray | None = None,
        palette: Sequence[int] | None = None,
    ):
        if width < 0 or height < 0:
            raise ValueError(f"Invalid bitmap size: {width}x{height}")
        self.width = width
        self.height = height
        self.pixels = bytearray(pixels) if pixels is not None else bytearray(width * height * 4)
        if len(self.pixels) != width * height * 4:
            raise ValueError(
                f"Pixel buffer holds {len(self.pixels)} bytes, expected {width * height * 4}"
            )
        self.indexed_pixels = bytearray(indexed_pixels or b"")
        if self.indexed_pixels and len(self.indexed_pixels) != width * height:
            raise ValueError(
                f"Index buffer holds {len(self.indexed_pixels)} values, expected {width * height}"
            )
        self.palette: List[int] = list(palette or [])

    # -- constructors -----------------------------------------------------

    @classmethod
    def from_png_bytes(cls, data: bytes) -> "Bitmap":
        """Decode PNG bytes into canonical 8-bit RGBA.

        Palette images keep their index buffer and palette table and come
        back as an ``IndexedBitmap``.
        """
        native = codec.decode(data, color_convert=False)

        indexed_pixels = None
        palette: List[int] = []
        if native.color_type == ColorType.PALETTE:
            indexed_pixels = native.pixels
            palette = to_rgba(native.palette_table or b"")

        needs_conversion = native.color_type != ColorType.RGBA or native.bit_depth != 8

        if needs_conversion:
            pixels = codec.decode(data, color_convert=True, force_8bit_rgba=True).pixels
        else:
            pixels = native.pixels

        if indexed_pixels is not None:
            return IndexedBitmap(native.width, native.height, pixels, indexed_pixels, palette)
        return Bitmap(native.width, native.height, pixels)

    @classmethod
    def open(cls, path: str | Path) -> "Bitmap":
        path = Path(path)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise DecodeError(f"Input file not found: {path}") from exc
        except OSError as exc:
            raise DecodeError(f"Failed to read PNG: {path}") from exc
        return cls.from_png_bytes(data)

    @classmethod
    def from_palette(cls, palette: "Palette") -> "Bitmap":
        """Render a palette swatch: one row per subpalette."""
        rows = palette.normalized_colors()
        if not rows or not rows[0]:
            raise EmptyPaletteError("No colors")

        bitmap = Bitmap(palette.max_colors_per_subpalette(), len(rows))
        for y, row in enumerate(rows):
            for x, color in enumerate(row):
                bitmap.set_pixel(rgba_color(color), x, y)
        return bitmap

    @classmethod
    def from_tileset(
        cls, tileset: "Tileset", sheet_width: int = SHEET_WIDTH, overhang: str = "wrap"
    ) -> "Bitmap":
        """Lay tiles out left to right, top to bottom on a fixed-width sheet.

        When the tile width does not divide ``sheet_width`` the last tile of
        each row overhangs the sheet. With ``overhang="wrap"`` its extra
        columns land at the start of the next pixel row, the same as any
        write addressed past the end of a row; ``"clip"`` drops them.
        """
        if overhang not in OVERHANGS:
            raise ValueError(f"Unknown overhang: {overhang}")
        tiles = tileset.tiles()
        tile_width = tileset.tile_width()
        tile_height = tileset.tile_height()
        tiles_per_row = _div_ceil(sheet_width, tile_width)
        rows = _div_ceil(tileset.size(), tiles_per_row)

        if sheet_width % tile_width:
            action = "wrapped into the next row" if overhang == "wrap" else "clipped"
            warnings.warn(
                f"Tile width {tile_width} does not divide sheet width {sheet_width}; "
                f"the last column will be {action}",
                RuntimeWarning,
                stacklevel=2,
            )

        bitmap = Bitmap(sheet_width, rows * tile_height)
        for tile_index, tile in enumerate(tiles):
            bitmap.blit(
                tile.rgba_data(),
                (tile_index % tiles_per_row) * tile_width,
                (tile_index // tiles_per_row) * tile_height,
                tile_width,
                clip=overhang == "clip",
            )
        return bitmap

    # -- pixel access -----------------------------------------------------

    @property
    def palette_size(self) -> int:
        return len(self.palette)

    def rgba_color_at(self, index: int) -> int:
        offset = index * 4
        p = self.pixels
        return p[offset] | p[offset + 1] << 8 | p[offset + 2] << 16 | p[offset + 3] << 24

    def rgba_color(self, x: int, y: int) -> int:
        return self.rgba_color_at(y * self.width + x)

    def rgba_data(self) -> List[int]:
        return to_rgba(self.pixels)

    def indexed_data(self) -> List[int]:
        return list(self.indexed_pixels)

    def set_pixel(self, color: int, x: int, y: int) -> None:
        """Write ``color`` at (x, y).

        Only the buffer bounds are checked, so an ``x`` past the right edge
        continues on the following row. Writes past the end of the buffer
        or at negative coordinates are ignored.
        """
        if x < 0 or y < 0:
            return
        self.set_pixel_at(color, y * self.width + x)

    def set_pixel_at(self, color: int, index: int) -> None:
        """Write ``color`` at a linear pixel index; out-of-range is ignored."""
        if index < 0:
            return
        _write_color(self.pixels, index * 4, color)

    def blit(self, rgba_data: Sequence[int], x: int, y: int, width: int, clip: bool = False) -> None:
        """Copy packed colors, ``width`` per row, with their origin at (x, y).

        Pixels follow :meth:`set_pixel`, so columns past the right edge wrap
        unless ``clip`` is set. Only the RGBA buffer is written; index data
        is left untouched.
        """
        for i, color in enumerate(rgba_data):
            px = i % width + x
            if clip and px >= self.width:
                continue
            self.set_pixel(color, px, i // width + y)

    # -- cropping ---------------------------------------------------------

    def _empty_like(self, width: int, height: int) -> "Bitmap":
        return Bitmap(width, height, _transparent_fill(width * height), None, self.palette)

    def crop(self, x: int, y: int, crop_width: int, crop_height: int) -> "Bitmap":
        """Return a ``crop_width`` x ``crop_height`` region starting at (x, y).

        Parts of the region outside this bitmap are transparent (index 0).
        """
        img = self._empty_like(crop_width, crop_height)

        if x > self.width or y > self.height:
            if self.indexed_pixels:
                img.indexed_pixels = bytearray(crop_width * crop_height)
            return img

        blit_width = min(crop_width, self.width - x)
        blit_height = min(crop_height, self.height - y)

        for iy in range(blit_height):
            src = (x + (iy + y) * self.width) * 4
            dst = iy * crop_width * 4
            img.pixels[dst : dst + blit_width * 4] = self.pixels[src : src + blit_width * 4]

        if self.indexed_pixels:
            img.indexed_pixels = bytearray(crop_width * crop_height)
            for iy in range(blit_height):
                src = x + (iy + y) * self.width
                dst = iy * crop_width
                img.indexed_pixels[dst : dst + blit_width] = self.indexed_pixels[src : src + blit_width]
        return img

    def _tile_origins(self, tile_width: int, tile_height: int, row_step: str):
        SliceOptions(tile_width, tile_height, row_step).validate()
        step = tile_height if row_step == "height" else tile_width
        y = 0
        while y < self.height:
            x = 0
            while x < self.width:
                yield x, y
                x += tile_width
            y += step

    def crops(self, tile_width: int, tile_height: int, row_step: str = "height") -> List["Bitmap"]:
        """Slice into tiles in row-major order; edge tiles are padded."""
        return [
            self.crop(x, y, tile_width, tile_height)
            for x, y in self._tile_origins(tile_width, tile_height, row_step)
        ]

    def rgba_crops(self, tile_width: int, tile_height: int, row_step: str = "height") -> List[List[int]]:
        return [
            self.crop(x, y, tile_width, tile_height).rgba_data()
            for x, y in self._tile_origins(tile_width, tile_height, row_step)
        ]

    def indexed_crops(self, tile_width: int, tile_height: int, row_step: str = "height") -> List[List[int]]:
        if not self.indexed_pixels:
            raise NoIndexedDataError("No indexed data in image")
        return [
            self.crop(x, y, tile_width, tile_height).indexed_data()
            for x, y in self._tile_origins(tile_width, tile_height, row_step)
        ]

    def slice(self, options: SliceOptions) -> List["Bitmap"]:
        options.validate()
        return self.crops(options.tile_width, options.tile_height, options.row_step)

    # -- output -----------------------------------------------------------

    def to_png_bytes(self) -> bytes:
        return codec.encode(self.pixels, self.width, self.height)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        data = self.to_png_bytes()
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise EncodeError(f"Failed to write PNG: {path}") from exc
        return path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.pixels == other.pixels
            and self.indexed_pixels == other.indexed_pixels
            and self.palette == other.palette
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"

    def __str__(self) -> str:
        return f"{self.width}x{self.height}, {'indexed color' if self.palette_size else 'rgb color'}"


class IndexedBitmap(Bitmap):
    """A bitmap whose RGBA pixels mirror its palette indices.

    ``blit`` and ``set_pixel`` would break that mirroring, so they are only
    available on the RGBA view returned by :meth:`plain`.
    """

    @classmethod
    def from_bitmap(cls, image: Bitmap, subpalette: "Subpalette") -> "IndexedBitmap":
        """Map every pixel of ``image`` to its exact match in ``subpalette``."""
        palette = subpalette.get_normalized_colors()
        if not palette:
            raise EmptyPaletteError("No colors")

        mode: Mode = subpalette.mode()
        size = image.width * image.height
        lookup = {}
        for index, color in enumerate(palette):
            lookup.setdefault(color, index)

        pixels = bytearray(size * 4)
        indexed = bytearray(size)
        for i in range(size):
            color = normalize_color(reduce_color(image.rgba_color_at(i), mode), mode)
            if color == TRANSPARENT_COLOR:
                indexed[i] = 0
                _write_color(pixels, i * 4, TRANSPARENT_COLOR)
                continue
            palette_index = lookup.get(color)
            if palette_index is None:
                raise ColorNotInPaletteError(color, i, image.width, Mode(mode).value)
            indexed[i] = palette_index
            _write_color(pixels, i * 4, rgba_color(palette[palette_index]))

        return cls(image.width, image.height, pixels, indexed, palette)

    def _empty_like(self, width: int, height: int) -> "IndexedBitmap":
        return IndexedBitmap(width, height, _transparent_fill(width * height), None, self.palette)

    def plain(self) -> Bitmap:
        """Return an RGBA-only copy suitable for compositing."""
        return Bitmap(self.width, self.height, self.pixels)

    def set_pixel(self, color: int, x: int, y: int) -> None:
        raise TypeError("IndexedBitmap pixels are bound to its palette; use plain() to draw")

    def set_pixel_at(self, color: int, index: int) -> None:
        raise TypeError("IndexedBitmap pixels are bound to its palette; use plain() to draw")

    def blit(self, rgba_data: Sequence[int], x: int, y: int, width: int, clip: bool = False) -> None:
        raise TypeError("IndexedBitmap pixels are bound to its palette; use plain() to blit")
