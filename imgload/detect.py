"""Signature checks for QOI, SVG and TIFF data, and SVG output sizing."""

from __future__ import annotations

import math
import struct
from typing import BinaryIO

from .surface import ImageError

_SVG_SCAN_LIMIT = 4095
_F32 = struct.Struct("<f")


def _f32(value: float) -> float:
    """Round ``value`` to single precision."""
    return _F32.unpack(_F32.pack(value))[0]


def _peek(src: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes and put the position back where it was."""
    start = src.tell()
    try:
        return src.read(size)
    finally:
        src.seek(start)


def is_qoi(src: BinaryIO | None) -> bool:
    """Tell whether ``src`` starts with the ``qoif`` signature."""
    if src is None:
        return False
    return _peek(src, 4) == b"qoif"


def is_svg(src: BinaryIO | None) -> bool:
    """Tell whether ``<svg`` appears near the start of ``src``.

    At most 4095 bytes are examined, and only those before the first NUL.
    """
    if src is None:
        return False
    head = _peek(src, _SVG_SCAN_LIMIT)
    text = head.split(b"\0", 1)[0]
    return b"<svg" in text


def is_tif(src: BinaryIO | None) -> bool:
    """Tell whether ``src`` starts with a little- or big-endian TIFF header."""
    if src is None:
        return False
    return _peek(src, 4) in (b"II\x2a\x00", b"MM\x00\x2a")


def svg_scale(image_width: float, image_height: float,
              width: int, height: int) -> float:
    """Scale that fits an image into the requested size, keeping its aspect ratio.

    A non-positive requested dimension is left free; with both free the
    scale is 1.
    """
    if image_width <= 0 or image_height <= 0:
        raise ImageError("Couldn't parse SVG image")
    image_width = _f32(image_width)
    image_height = _f32(image_height)
    if width > 0 and height > 0:
        return min(_f32(_f32(width) / image_width), _f32(_f32(height) / image_height))
    if width > 0:
        return _f32(_f32(width) / image_width)
    if height > 0:
        return _f32(_f32(height) / image_height)
    return 1.0


def svg_surface_size(image_width: float, image_height: float,
                     width: int, height: int) -> tuple[int, int]:
    """Pixel size of the surface an SVG image is rendered onto."""
    scale = svg_scale(image_width, image_height, width, height)
    return (
        math.ceil(_f32(_f32(image_width) * scale)),
        math.ceil(_f32(_f32(image_height) * scale)),
    )