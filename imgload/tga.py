"""Truevision Targa loader.

Reads 8, 15, 16, 24 and 32 bpp images, colour-mapped, true-colour or
greyscale, uncompressed or RLE encoded.
"""

from __future__ import annotations

import enum
import struct
from typing import BinaryIO

from .surface import Color, ImageError, PixelFormat, Surface

_HEADER = struct.Struct("<BBBHHBHHHHBB")

_INTERLEAVE_MASK = 0xC0
_ORIGIN_RIGHT = 0x10
_ORIGIN_UPPER = 0x20

_READ_ERROR = "Error reading TGA data"
_UNSUPPORTED = "Unsupported TGA format"


class _TgaType(enum.IntEnum):
    INDEXED = 1
    RGB = 2
    BW = 3
    RLE_INDEXED = 9
    RLE_RGB = 10
    RLE_BW = 11


_FORMATS = {
    15: PixelFormat.RGB555,  # the extra alpha bit of 16 bpp data is ignored
    16: PixelFormat.RGB555,
    24: PixelFormat.BGR24,
    32: PixelFormat.BGRA32,
}


def _read_exact(src: BinaryIO, size: int) -> bytes:
    data = src.read(size)
    if len(data) != size:
        raise ImageError(_READ_ERROR)
    return data


def load_tga(src: BinaryIO) -> Surface:
    """Decode a TGA image; on failure the position is restored and ImageError raised."""
    start = src.tell()
    try:
        return _decode(src)
    except ImageError:
        src.seek(start)
        raise


def _decode(src: BinaryIO) -> Surface:
    (infolen, has_cmap, raw_type, _cmap_start, ncols, cmap_bits,
     _yorigin, _xorigin, width, height, pixel_bits, flags) = _HEADER.unpack(
        _read_exact(src, _HEADER.size))

    try:
        img_type = _TgaType(raw_type)
    except ValueError:
        raise ImageError(_UNSUPPORTED) from None
    rle = img_type >= _TgaType.RLE_INDEXED
    base = _TgaType(img_type & ~8)
    grey = False
    if base is _TgaType.INDEXED:
        if not has_cmap or pixel_bits != 8 or ncols > 256:
            raise ImageError(_UNSUPPORTED)
        indexed = True
    elif base is _TgaType.RGB:
        indexed = False
    else:
        if pixel_bits != 8:
            raise ImageError(_UNSUPPORTED)
        indexed = grey = True

    bpp = (pixel_bits + 7) >> 3
    if pixel_bits == 8:
        if not indexed:
            raise ImageError(_UNSUPPORTED)
        fmt = PixelFormat.INDEX8
    elif pixel_bits in _FORMATS:
        fmt = _FORMATS[pixel_bits]
    else:
        raise ImageError(_UNSUPPORTED)

    if flags & _INTERLEAVE_MASK or flags & _ORIGIN_RIGHT:
        raise ImageError(_UNSUPPORTED)

    src.seek(infolen, 1)
    surface = Surface(width, height, fmt)

    if has_cmap:
        palsiz = ncols * ((cmap_bits + 7) >> 3)
        if indexed and not grey:
            _read_colormap(surface, _read_exact(src, palsiz), ncols, cmap_bits)
        else:
            src.seek(palsiz, 1)

    if grey:
        surface.palette = [Color(i, i, i) for i in range(256)]

    rows = range(height) if flags & _ORIGIN_UPPER else range(height - 1, -1, -1)
    if rle:
        lines = _rle_rows(src, width, bpp)
        for y in rows:
            surface.row(y)[:] = next(lines)
    else:
        for y in rows:
            surface.row(y)[:] = _read_exact(src, width * bpp)
    return surface


def _read_colormap(surface: Surface, pal: bytes, ncols: int, cmap_bits: int) -> None:
    colors = []
    color_key = None
    offset = 0
    for i in range(ncols):
        if cmap_bits in (15, 16):
            c = pal[offset] | (pal[offset + 1] << 8)
            offset += 2
            colors.append(Color((c >> 7) & 0xF8, (c >> 2) & 0xF8, (c << 3) & 0xFF))
        elif cmap_bits in (24, 32):
            b, g, r = pal[offset:offset + 3]
            offset += 3
            colors.append(Color(r, g, b))
            if cmap_bits == 32:
                if pal[offset] < 128:
                    color_key = i
                offset += 1
        else:
            colors.append(Color(255, 255, 255))
    surface.palette = colors
    if color_key is not None:
        surface.color_key = color_key


def _rle_rows(src: BinaryIO, width: int, bpp: int):
    """Yield decoded rows; packets may span scan lines."""
    count = rep = 0
    pixel = b""
    while True:
        line = bytearray()
        x = 0
        while True:
            if count:
                n = min(count, width - x)
                line += _read_exact(src, n * bpp)
                count -= n
                x += n
                if x == width:
                    break
            elif rep:
                n = min(rep, width - x)
                rep -= n
                line += pixel * n
                x += n
                if x == width:
                    break
            packet = _read_exact(src, 1)[0]
            if packet & 0x80:
                pixel = _read_exact(src, bpp)
                rep = (packet & 0x7F) + 1
            else:
                count = packet + 1
        yield bytes(line)