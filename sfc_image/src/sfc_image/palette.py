"""Palette and subpalette types consumed by the bitmap constructors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Sequence

from .color import Mode, format_color, normalize_color, reduce_color

if TYPE_CHECKING:
    from .bitmap import Bitmap


@dataclass
class Subpalette:
    """An ordered list of colors valid for one region of console output."""

    colors: List[int] = field(default_factory=list)
    color_mode: Mode = Mode.SNES

    def mode(self) -> Mode:
        return self.color_mode

    def get_normalized_colors(self) -> List[int]:
        """Return the colors as they appear after reduction under ``mode``.

        Order and duplicates are preserved so index values stay stable.
        """
        return [normalize_color(reduce_color(color, self.color_mode), self.color_mode) for color in self.colors]

    def __len__(self) -> int:
        return len(self.colors)

    def __str__(self) -> str:
        return ", ".join(format_color(color) for color in self.get_normalized_colors())


@dataclass
class Palette:
    """A list of subpalettes sharing one color mode."""

    subpalettes: List[Subpalette] = field(default_factory=list)

    @classmethod
    def from_colors(cls, rows: Sequence[Sequence[int]], mode: Mode = Mode.SNES) -> "Palette":
        return cls([Subpalette(list(row), mode) for row in rows])

    @classmethod
    def from_swatch(cls, swatch: "Bitmap", mode: Mode = Mode.SNES) -> "Palette":
        """Read a palette swatch image: one subpalette per row.

        A row ends at its first transparent cell; fully transparent rows are
        skipped.
        """
        rows: List[List[int]] = []
        for y in range(swatch.height):
            row: List[int] = []
            for x in range(swatch.width):
                color = swatch.rgba_color(x, y)
                if color >> 24 == 0:
                    break
                row.append(color)
            if row:
                rows.append(row)
        return cls.from_colors(rows, mode)

    def normalized_colors(self) -> List[List[int]]:
        return [subpalette.get_normalized_colors() for subpalette in self.subpalettes]

    def max_colors_per_subpalette(self) -> int:
        return max((len(subpalette) for subpalette in self.subpalettes), default=0)

    def subpalette(self, index: int) -> Subpalette:
        return self.subpalettes[index]

    def __len__(self) -> int:
        return len(self.subpalettes)
