"""Command line interface for the sfc_image converter."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, List

from . import codec
from .bitmap import OVERHANGS, ROW_STEPS, SHEET_WIDTH, Bitmap, IndexedBitmap, SliceOptions
from .color import Mode
from .errors import SfcImageError
from .palette import Palette
from .tiles import Tileset


def iter_pngs(paths: Iterable[str], recursive: bool = False) -> List[Path]:
    """Expand files and folders into PNG paths, folders in sorted order."""
    pattern = "**/*" if recursive else "*"
    results: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            if path.suffix.lower() != ".png":
                raise SfcImageError(f"Not a PNG file: {path}")
            results.append(path)
        elif path.is_dir():
            results.extend(
                entry
                for entry in sorted(path.glob(pattern))
                if entry.is_file() and entry.suffix.lower() == ".png"
            )
        else:
            raise SfcImageError(f"Input path does not exist: {path}")
    if not results:
        raise SfcImageError("No PNG files found" + (" (searched recursively)" if recursive else ""))
    return results


def check_output(path: Path, force: bool) -> Path:
    if path.exists() and not force:
        raise SfcImageError(f"Output file already exists (use --force to overwrite): {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _mode_names() -> List[str]:
    return [mode.value for mode in Mode]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sfc-image",
        description=(
            "Inspect PNG files, bind them to console palettes and rebuild them as tile sheets.\n"
            "Palettes are read from swatch PNGs: one subpalette per row, each row ending at its "
            "first transparent pixel."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    info = commands.add_parser("info", help="Show the size and color type of PNG files")
    info.add_argument("inputs", nargs="+", help="PNG files or folders containing PNGs")
    info.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Also list PNGs in subfolders of folder inputs",
    )

    remap = commands.add_parser("remap", help="Map an image onto one subpalette of a swatch")
    remap.add_argument("input", help="Source PNG")
    remap.add_argument("--palette", required=True, help="Palette swatch PNG")
    remap.add_argument("--subpalette", type=int, default=0, help="Swatch row to map onto (default 0)")
    remap.add_argument("-o", "--output", required=True, help="Destination PNG")

    sheet = commands.add_parser("sheet", help="Slice an image into tiles and write a tile sheet")
    sheet.add_argument("input", help="Source PNG")
    sheet.add_argument(
        "--tile-size",
        nargs=2,
        type=int,
        default=[8, 8],
        metavar=("W", "H"),
        help="Tile width and height in pixels (default 8 8)",
    )
    sheet.add_argument(
        "--row-step",
        choices=ROW_STEPS,
        default="height",
        help="Advance tile rows by the tile height (default) or by the tile width",
    )
    sheet.add_argument(
        "--sheet-width",
        type=int,
        default=SHEET_WIDTH,
        help=f"Width of the output sheet in pixels (default {SHEET_WIDTH})",
    )
    sheet.add_argument(
        "--overhang",
        choices=OVERHANGS,
        default="wrap",
        help="Tiles crossing the right edge of the sheet wrap into the next row (default) or are clipped",
    )
    sheet.add_argument("-o", "--output", required=True, help="Destination PNG")

    swatch = commands.add_parser("swatch", help="Normalize a palette swatch under a color mode")
    swatch.add_argument("input", help="Palette swatch PNG")
    swatch.add_argument("-o", "--output", required=True, help="Destination PNG")

    for sub in (remap, swatch):
        sub.add_argument(
            "--mode",
            choices=_mode_names(),
            default=Mode.SNES.value,
            help="Console color mode used to reduce colors (default snes)",
        )
    for sub in (remap, sheet, swatch):
        sub.add_argument(
            "-f",
            "--force",
            action="store_true",
            help="Overwrite existing files without prompting",
        )

    return parser


def run_info(args: argparse.Namespace) -> None:
    for path in iter_pngs(args.inputs, args.recursive):
        data = path.read_bytes()
        header = codec.describe(codec.decode(data, color_convert=False))
        bitmap = Bitmap.from_png_bytes(data)
        print(
            f"{path}: {bitmap}, stored as {header['color_type']} "
            f"{header['bit_depth']}-bit, {bitmap.palette_size} palette entries"
        )


def run_remap(args: argparse.Namespace) -> None:
    mode = Mode.parse(args.mode)
    palette = Palette.from_swatch(Bitmap.open(args.palette), mode)
    if not 0 <= args.subpalette < len(palette):
        raise SfcImageError(
            f"Subpalette {args.subpalette} is out of range (swatch has {len(palette)} rows)"
        )
    output = check_output(Path(args.output), args.force)
    indexed = IndexedBitmap.from_bitmap(Bitmap.open(args.input), palette.subpalette(args.subpalette))
    indexed.save(output)
    print(f"wrote {output} ({indexed})")


def run_sheet(args: argparse.Namespace) -> None:
    width, height = args.tile_size
    options = SliceOptions(width, height, args.row_step, args.sheet_width, args.overhang)
    try:
        options.validate()
    except ValueError as exc:
        raise SfcImageError(str(exc)) from exc
    output = check_output(Path(args.output), args.force)
    tileset = Tileset.from_bitmap(Bitmap.open(args.input), options)
    sheet = Bitmap.from_tileset(tileset, options.sheet_width, options.overhang)
    sheet.save(output)
    print(f"wrote {output} ({tileset.size()} tiles, {sheet})")


def run_swatch(args: argparse.Namespace) -> None:
    mode = Mode.parse(args.mode)
    output = check_output(Path(args.output), args.force)
    palette = Palette.from_swatch(Bitmap.open(args.input), mode)
    swatch = Bitmap.from_palette(palette)
    swatch.save(output)
    print(f"wrote {output} ({swatch})")
    for index, subpalette in enumerate(palette.subpalettes):
        print(f"  {index}: {subpalette}")


COMMANDS = {
    "info": run_info,
    "remap": run_remap,
    "sheet": run_sheet,
    "swatch": run_swatch,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        COMMANDS[args.command](args)
        return 0
    except SfcImageError as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
