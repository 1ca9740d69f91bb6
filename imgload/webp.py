"""Signature check and sizing for WebP (RIFF/WEBP) data."""

from __future__ import annotations

import io
from typing import BinaryIO

from .surface import ImageError

_HEADER_SIZE = 20
_CHUNK_KINDS = (b" ", b"X", b"L")


def _looks_like_webp(magic: bytes) -> bool:
    return (
        len(magic) == _HEADER_SIZE
        and magic[0:4] == b"RIFF"
        and magic[8:12] == b"WEBP"
        and magic[12:15] == b"VP8"
        and magic[15:16] in _CHUNK_KINDS
    )


def _stream_size(src: BinaryIO) -> int:
    """Total size of the stream, or -1 when it cannot be determined."""
    position = src.tell()
    try:
        return src.seek(0, io.SEEK_END)
    except (OSError, ValueError):
        return -1
    finally:
        src.seek(position)


def _probe(src: BinaryIO) -> tuple[bool, int]:
    """Check the signature and measure the remaining data; the position is kept."""
    start = src.tell()
    try:
        if not _looks_like_webp(src.read(_HEADER_SIZE)):
            return False, 0
        size = _stream_size(src)
        return True, size - start if size > 0 else 0
    finally:
        src.seek(start)


def is_webp(src: BinaryIO | None) -> bool:
    """Tell whether ``src`` starts with a RIFF WEBP header holding a VP8 chunk."""
    if src is None:
        return False
    found, _ = _probe(src)
    return found


def webp_data_size(src: BinaryIO) -> int:
    """Number of bytes from the current position to the end of a WebP stream.

    Raises ImageError when the data does not start with a WebP header.
    The position of ``src`` is left unchanged.
    """
    if src is None:
        raise ImageError("Invalid WEBP")
    found, size = _probe(src)
    if not found:
        raise ImageError("Invalid WEBP")
    return size