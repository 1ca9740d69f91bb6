"""Portable anymap (PBM, PGM, PPM) loader, ASCII and binary variants.

PBM and PGM images load as 8-bit indexed surfaces, PPM as RGB24.
Maximum component values above 255 are not supported.
"""

from __future__ import annotations

import enum
from typing import BinaryIO

from .surface import Color, ImageError, PixelFormat, Surface

_WHITESPACE = b" \t\n\v\f\r"
_DIGITS = b"0123456789"
_INT_MAX = 2147483647


class _Kind(enum.IntEnum):
    PBM = 0
    PGM = 1
    PPM = 2


def is_pnm(src: BinaryIO | None) -> bool:
    """Tell whether ``src`` starts with a P1..P6 signature; the position is kept."""
    if src is None:
        return False
    start = src.tell()
    try:
        magic = src.read(2)
    finally:
        src.seek(start)
    return len(magic) == 2 and magic[0] == ord("P") and magic[1] in b"123456"


def _read_byte(src: BinaryIO) -> int | None:
    data = src.read(1)
    return data[0] if data else None


def _read_number(src: BinaryIO) -> int | None:
    """Read a non-negative decimal number, skipping whitespace and comments."""
    while True:
        ch = _read_byte(src)
        if ch is None:
            return None
        if ch == ord("#"):
            while True:
                ch = _read_byte(src)
                if ch is None:
                    return None
                if ch in b"\r\n":
                    break
        if ch not in _WHITESPACE:
            break
    if ch not in _DIGITS:
        return None
    number = 0
    while True:
        if number >= _INT_MAX // 10:
            return None
        number = number * 10 + ch - ord("0")
        ch = _read_byte(src)
        if ch is None:
            return None
        if ch not in _DIGITS:
            return number


def _read_bit(src: BinaryIO) -> int:
    while True:
        ch = _read_byte(src)
        if ch is None:
            raise ImageError("file truncated")
        value = (ch - ord("0")) & 0xFF
        if value <= 1:
            return value


def _read_sample(src: BinaryIO) -> int:
    value = _read_number(src)
    if value is None:
        raise ImageError("file truncated")
    return value & 0xFF


def load_pnm(src: BinaryIO) -> Surface:
    """Decode a PNM image; on failure the position is restored and ImageError raised."""
    start = src.tell()
    try:
        return _decode(src)
    except ImageError:
        src.seek(start)
        raise


def _decode(src: BinaryIO) -> Surface:
    magic = src.read(2)
    if len(magic) != 2:
        raise ImageError("file truncated")
    if magic[0] != ord("P") or magic[1] not in b"123456":
        raise ImageError("unsupported PNM format")
    index = magic[1] - ord("1")
    ascii_data = index < 3
    kind = _Kind(index % 3)

    width = _read_number(src)
    height = _read_number(src)
    if width is None or height is None or width <= 0 or height <= 0:
        raise ImageError("Unable to read image width and height")

    if kind is _Kind.PBM:
        maxval = 255  # bitmaps are never scaled
    else:
        maxval = _read_number(src)
        if maxval is None or maxval <= 0 or maxval > 255:
            raise ImageError("unsupported PNM format")

    fmt = PixelFormat.RGB24 if kind is _Kind.PPM else PixelFormat.INDEX8
    surface = Surface(width, height, fmt)
    bpl = width * surface.bytes_per_pixel
    if kind is _Kind.PGM:
        surface.palette = [Color(i, i, i) for i in range(256)]
    elif kind is _Kind.PBM:
        # 1 is black, 0 is white
        surface.palette = [Color(255, 255, 255), Color(0, 0, 0)]
        bpl = (width + 7) >> 3

    for y in range(height):
        if ascii_data:
            if kind is _Kind.PBM:
                values = bytes(_read_bit(src) for _ in range(width))
            else:
                values = bytes(_read_sample(src) for _ in range(bpl))
        else:
            data = src.read(bpl)
            if len(data) != bpl:
                raise ImageError("file truncated")
            if kind is _Kind.PBM:
                values = bytes((data[i >> 3] >> (7 - (i & 7))) & 1 for i in range(width))
            else:
                values = data
        if maxval < 255:
            values = bytes((v * 255 // maxval) & 0xFF for v in values)
        surface.row(y)[:] = values
    return surface