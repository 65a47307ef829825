"""Tile and tileset types used to assemble tile sheets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .bitmap import Bitmap, SliceOptions


@dataclass
class Tile:
    """A fixed-size block of packed RGBA colors stored row-major."""

    rgba: List[int]
    width: int = 8
    height: int = 8

    def __post_init__(self) -> None:
        if len(self.rgba) != self.width * self.height:
            raise ValueError(
                f"Tile data has {len(self.rgba)} pixels, expected {self.width}x{self.height}"
            )

    def rgba_data(self) -> List[int]:
        return list(self.rgba)


@dataclass
class Tileset:
    """An ordered collection of equally sized tiles."""

    tile_list: List[Tile] = field(default_factory=list)
    width: int = 8
    height: int = 8

    @classmethod
    def from_bitmap(cls, bitmap: Bitmap, options: SliceOptions | None = None) -> "Tileset":
        options = options or SliceOptions()
        tiles = [
            Tile(rgba, options.tile_width, options.tile_height)
            for rgba in bitmap.rgba_crops(options.tile_width, options.tile_height, options.row_step)
        ]
        return cls(tiles, options.tile_width, options.tile_height)

    def add(self, tile: Tile) -> None:
        if tile.width != self.width or tile.height != self.height:
            raise ValueError(
                f"Tile is {tile.width}x{tile.height}, tileset expects {self.width}x{self.height}"
            )
        self.tile_list.append(tile)

    def tiles(self) -> List[Tile]:
        return self.tile_list

    def tile_width(self) -> int:
        return self.width

    def tile_height(self) -> int:
        return self.height

    def size(self) -> int:
        return len(self.tile_list)
