"""PNG encode/decode on top of Pillow.

Pillow hides the stored encoding of a PNG once it is loaded (16-bit samples
are narrowed, sub-byte samples unpacked), so the header chunks are read
directly to report the file's native color type and bit depth.
"""

from __future__ import annotations

import io
import struct
import zlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Tuple

from PIL import Image

from .errors import DecodeError, EncodeError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class ColorType(IntEnum):
    """PNG IHDR color types."""

    GREY = 0
    RGB = 2
    PALETTE = 3
    GREY_ALPHA = 4
    RGBA = 6


@dataclass
class PngHeader:
    width: int
    height: int
    bit_depth: int
    color_type: ColorType
    palette_table: Optional[bytes] = None  # RGBA quadruplets
    transparency: Optional[bytes] = None


@dataclass
class DecodedImage:
    pixels: bytes
    width: int
    height: int
    color_type: ColorType
    bit_depth: int
    palette_table: Optional[bytes] = None

    @property
    def palette_size(self) -> int:
        return len(self.palette_table) // 4 if self.palette_table else 0


def read_png_header(data: bytes) -> PngHeader:
    """Read IHDR, PLTE and tRNS from raw PNG bytes."""
    if not data.startswith(PNG_SIGNATURE):
        raise DecodeError("Invalid PNG signature")

    offset = len(PNG_SIGNATURE)
    ihdr: Optional[tuple] = None
    plte = b""
    trns: Optional[bytes] = None

    while offset + 8 <= len(data):
        length = struct.unpack(">I", data[offset : offset + 4])[0]
        chunk_type = data[offset + 4 : offset + 8]
        chunk_data = data[offset + 8 : offset + 8 + length]
        if len(chunk_data) != length:
            raise DecodeError(f"Truncated {chunk_type.decode('latin-1')} chunk")
        offset += 12 + length

        if chunk_type == b"IHDR":
            if length != 13:
                raise DecodeError("Invalid IHDR chunk length")
            ihdr = struct.unpack(">IIBBBBB", chunk_data)
        elif chunk_type == b"PLTE":
            if length % 3 != 0:
                raise DecodeError("Invalid PLTE chunk length")
            plte = chunk_data
        elif chunk_type == b"tRNS":
            trns = chunk_data
        elif chunk_type == b"IDAT" or chunk_type == b"IEND":
            break

    if ihdr is None:
        raise DecodeError("Missing IHDR chunk")

    width, height, bit_depth, color_type, _compression, _filter, _interlace = ihdr
    try:
        color_type = ColorType(color_type)
    except ValueError as exc:
        raise DecodeError(f"Unsupported PNG color type: {color_type}") from exc

    palette_table = None
    if color_type == ColorType.PALETTE:
        if not plte:
            raise DecodeError("Missing PLTE chunk in palette image")
        alphas = trns or b""
        table = bytearray()
        for index in range(len(plte) // 3):
            table.extend(plte[index * 3 : index * 3 + 3])
            table.append(alphas[index] if index < len(alphas) else 0xFF)
        palette_table = bytes(table)

    return PngHeader(width, height, bit_depth, color_type, palette_table, trns)


def _color_key(header: PngHeader) -> Optional[Tuple[int, ...]]:
    """Return the tRNS color key of a grey or RGB image as stored samples."""
    trns = header.transparency
    if header.color_type == ColorType.GREY and trns and len(trns) >= 2:
        return struct.unpack(">H", trns[:2])
    if header.color_type == ColorType.RGB and trns and len(trns) >= 6:
        return struct.unpack(">HHH", trns[:6])
    return None


def _scale_sample(value: int, bit_depth: int) -> int:
    # Matches Pillow's unpacking: 16-bit keeps the high byte, sub-byte
    # samples are replicated up to 8 bits.
    if bit_depth == 16:
        return value >> 8
    if bit_depth < 8:
        maximum = (1 << bit_depth) - 1
        return (value & maximum) * (0xFF // maximum)
    return value & 0xFF


def _grey16_to_rgba(img: Image.Image, key: Optional[int]) -> Image.Image:
    wide = img.convert("I")
    grey = wide.point(lambda value: value * (1 / 256)).convert("L")
    rgba = grey.convert("RGBA")
    if key is not None:
        alpha = bytes(0 if value == key else 0xFF for value in wide.getdata())
        rgba.putalpha(Image.frombytes("L", rgba.size, alpha))
    return rgba


def _apply_color_key(rgba: Image.Image, key: Tuple[int, int, int]) -> Image.Image:
    alpha = bytes(0 if pixel[:3] == key else 0xFF for pixel in rgba.getdata())
    rgba.putalpha(Image.frombytes("L", rgba.size, alpha))
    return rgba


def _to_rgba8(img: Image.Image, header: PngHeader) -> Image.Image:
    key = _color_key(header)
    if img.mode in ("I", "I;16", "I;16B", "I;16L"):
        return _grey16_to_rgba(img, key[0] if key else None)
    if img.mode == "RGBA":
        return img
    if key is None:
        return img.convert("RGBA")

    # Pillow compares the stored key against already narrowed samples, so
    # the key is applied here at 8 bits instead.
    img.info.pop("transparency", None)
    scaled = tuple(_scale_sample(value, header.bit_depth) for value in key)
    if len(scaled) == 1:
        scaled = scaled * 3
    return _apply_color_key(img.convert("RGBA"), scaled)


def decode(data: bytes, color_convert: bool = True, force_8bit_rgba: bool = True) -> DecodedImage:
    """Decode PNG bytes.

    With ``color_convert`` disabled the pixels are returned in the file's own
    layout (one palette index per pixel for palette images). With it enabled
    and ``force_8bit_rgba`` set, pixels are 8-bit R,G,B,A.
    """
    header = read_png_header(data)
    try:
        with Image.open(io.BytesIO(data), formats=["PNG"]) as img:
            img.load()
            if color_convert and force_8bit_rgba:
                pixels = _to_rgba8(img, header).tobytes()
            else:
                pixels = img.tobytes()
            width, height = img.size
    except (OSError, SyntaxError, ValueError, zlib.error, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Failed to decode PNG: {exc}") from exc

    return DecodedImage(
        pixels=pixels,
        width=width,
        height=height,
        color_type=header.color_type,
        bit_depth=header.bit_depth,
        palette_table=header.palette_table,
    )


def encode(pixels: bytes | bytearray, width: int, height: int) -> bytes:
    """Encode an 8-bit RGBA buffer as a PNG file."""
    if width <= 0 or height <= 0:
        raise EncodeError(f"Cannot encode an empty {width}x{height} image")
    if len(pixels) != width * height * 4:
        raise EncodeError(
            f"Pixel buffer holds {len(pixels)} bytes, expected {width * height * 4}"
        )
    try:
        img = Image.frombytes("RGBA", (width, height), bytes(pixels))
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Failed to encode PNG: {exc}") from exc
    return buffer.getvalue()


def describe(decoded: DecodedImage) -> Dict[str, object]:
    return {
        "width": decoded.width,
        "height": decoded.height,
        "bit_depth": decoded.bit_depth,
        "color_type": decoded.color_type.name.lower(),
        "palette_size": decoded.palette_size,
    }
