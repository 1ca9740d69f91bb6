"""Readers for the structures of GIMP XCF files: header, layers, channels,
hierarchies, levels and tiles."""

from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass, field
from typing import BinaryIO

from .surface import ImageError

_U32 = struct.Struct(">I")
_S32 = struct.Struct(">i")

# Size of the property payload area; COMPRESSION and COLOR payloads are
# read up to this many bytes.
_PROP_DATA_SIZE = 24

_DEFAULT_PRECISION = 150


class PropType(enum.IntEnum):
    """Property identifiers."""

    END = 0
    COLORMAP = 1
    ACTIVE_LAYER = 2
    ACTIVE_CHANNEL = 3
    SELECTION = 4
    FLOATING_SELECTION = 5
    OPACITY = 6
    MODE = 7
    VISIBLE = 8
    LINKED = 9
    PRESERVE_TRANSPARENCY = 10
    APPLY_MASK = 11
    EDIT_MASK = 12
    SHOW_MASK = 13
    SHOW_MASKED = 14
    OFFSETS = 15
    COLOR = 16
    COMPRESSION = 17
    GUIDES = 18
    RESOLUTION = 19
    TATTOO = 20
    PARASITES = 21
    UNIT = 22
    PATHS = 23
    USER_UNIT = 24


class Compression(enum.IntEnum):
    """Tile compression schemes."""

    NONE = 0
    RLE = 1
    ZLIB = 2
    FRACTAL = 3


class ImageType(enum.IntEnum):
    """Base colour model of an image."""

    RGB = 0
    GREYSCALE = 1
    INDEXED = 2


@dataclass
class Property:
    """One property record; only the fields relevant to its id are set."""

    id: int
    length: int
    colormap: bytes | None = None
    offset: tuple[int, int] | None = None
    opacity: int | None = None
    visible: int | None = None
    compression: int | None = None
    color: tuple[int, int, int] | None = None


@dataclass
class Header:
    """The image header and the properties the loader keeps from it."""

    signature: bytes = b""
    file_version: int = 0
    width: int = 0
    height: int = 0
    image_type: int = ImageType.RGB
    precision: int = _DEFAULT_PRECISION
    compression: int = Compression.NONE
    colormap: bytes = b""
    layer_offsets: list[int] = field(default_factory=list)

    @property
    def colormap_size(self) -> int:
        return len(self.colormap) // 3


@dataclass
class Layer:
    width: int
    height: int
    layer_type: int
    name: str | None = None
    offset_x: int = 0
    offset_y: int = 0
    visible: bool = False
    hierarchy_offset: int = 0
    mask_offset: int = 0


@dataclass
class Channel:
    width: int
    height: int
    name: str | None = None
    color: int = 0
    opacity: int = 0
    selection: bool = False
    visible: bool = False
    hierarchy_offset: int = 0


@dataclass
class Hierarchy:
    width: int
    height: int
    bpp: int
    level_offsets: list[int] = field(default_factory=list)


@dataclass
class Level:
    width: int
    height: int
    tile_offsets: list[int] = field(default_factory=list)


def _try_u32(src: BinaryIO) -> int | None:
    data = src.read(4)
    return _U32.unpack(data)[0] if len(data) == 4 else None


def _u32(src: BinaryIO, what: str) -> int:
    value = _try_u32(src)
    if value is None:
        raise ImageError(f"Couldn't read {what}")
    return value


def _s32(src: BinaryIO, what: str) -> int:
    data = src.read(4)
    if len(data) != 4:
        raise ImageError(f"Couldn't read {what}")
    return _S32.unpack(data)[0]


def _exact(src: BinaryIO, size: int, what: str) -> bytes:
    data = src.read(size)
    if len(data) != size:
        raise ImageError(f"Couldn't read {what}")
    return data


def _remaining(src: BinaryIO) -> int:
    position = src.tell()
    end = src.seek(0, io.SEEK_END)
    src.seek(position)
    return end - position


def read_string(src: BinaryIO) -> str | None:
    """Read a length-prefixed, NUL-terminated string; None if it cannot be read."""
    length = _try_u32(src)
    if length is None or length > _remaining(src):
        return None
    data = src.read(length)
    if len(data) != length:
        return None
    text = data[:-1].split(b"\0", 1)[0] if data else b""
    return text.decode("utf-8", errors="replace")


def read_offset(src: BinaryIO, header: Header) -> int:
    """Read a file offset: 64 bits from version 11 on, 32 bits before."""
    offset = 0
    if header.file_version >= 11:
        high = _try_u32(src)
        if high is not None:
            offset = high << 32
    low = _try_u32(src)
    if low is not None:
        offset |= low
    return offset


def read_property(src: BinaryIO) -> Property:
    """Read one property record, skipping payloads the loader has no use for."""
    prop = Property(_u32(src, "property id"), _u32(src, "property length"))

    if prop.id == PropType.COLORMAP:
        count = _u32(src, "colormap size")
        prop.colormap = _exact(src, count * 3, "colormap")
    elif prop.id == PropType.OFFSETS:
        prop.offset = (_s32(src, "layer offset"), _s32(src, "layer offset"))
    elif prop.id == PropType.OPACITY:
        prop.opacity = _u32(src, "opacity")
    elif prop.id in (PropType.COMPRESSION, PropType.COLOR):
        size = min(prop.length, _PROP_DATA_SIZE)
        payload = _exact(src, size, "property data").ljust(3, b"\0")
        prop.compression = payload[0]
        prop.color = (payload[0], payload[1], payload[2])
    elif prop.id == PropType.VISIBLE:
        prop.visible = _u32(src, "visibility")
    else:
        src.seek(prop.length, io.SEEK_CUR)
    return prop


def _parse_version(signature: bytes) -> int:
    digits = signature[10:13]
    if signature[9:10] == b"v" and len(digits) == 3 and digits.isdigit():
        return int(digits)
    return 0


def read_header(src: BinaryIO) -> Header:
    """Read the file header and its property list."""
    header = Header(signature=_exact(src, 14, "signature"))
    header.width = _u32(src, "image width")
    header.height = _u32(src, "image height")
    header.image_type = _u32(src, "image type")
    header.file_version = _parse_version(header.signature)
    if header.file_version >= 4:
        header.precision = _u32(src, "precision")

    while True:
        prop = read_property(src)
        if prop.id == PropType.COMPRESSION:
            header.compression = prop.compression
        elif prop.id == PropType.COLORMAP:
            header.colormap = prop.colormap
        if prop.id == PropType.END:
            return header


def read_layer(src: BinaryIO, header: Header) -> Layer:
    """Read a layer record positioned at the current offset."""
    layer = Layer(_u32(src, "layer width"), _u32(src, "layer height"),
                  _u32(src, "layer type"))
    layer.name = read_string(src)
    while True:
        prop = read_property(src)
        if prop.id == PropType.OFFSETS:
            layer.offset_x, layer.offset_y = prop.offset
        elif prop.id == PropType.VISIBLE:
            layer.visible = bool(prop.visible)
        if prop.id == PropType.END:
            break
    layer.hierarchy_offset = read_offset(src, header)
    layer.mask_offset = read_offset(src, header)
    return layer


def read_channel(src: BinaryIO, header: Header) -> Channel:
    """Read a channel record positioned at the current offset."""
    channel = Channel(_u32(src, "channel width"), _u32(src, "channel height"))
    channel.name = read_string(src)
    while True:
        prop = read_property(src)
        if prop.id == PropType.OPACITY:
            channel.opacity = (prop.opacity << 24) & 0xFFFFFFFF
        elif prop.id == PropType.COLOR:
            r, g, b = prop.color
            channel.color = (r << 16) | (g << 8) | b
        elif prop.id == PropType.SELECTION:
            channel.selection = True
        elif prop.id == PropType.VISIBLE:
            channel.visible = bool(prop.visible)
        if prop.id == PropType.END:
            break
    channel.hierarchy_offset = read_offset(src, header)
    return channel


def _offsets_until_zero(src: BinaryIO, header: Header) -> list[int]:
    offsets = []
    while (offset := read_offset(src, header)) != 0:
        offsets.append(offset)
    return offsets


def read_hierarchy(src: BinaryIO, header: Header) -> Hierarchy:
    """Read a hierarchy record and its zero-terminated level offsets."""
    hierarchy = Hierarchy(_u32(src, "hierarchy width"), _u32(src, "hierarchy height"),
                          _u32(src, "hierarchy bpp"))
    hierarchy.level_offsets = _offsets_until_zero(src, header)
    return hierarchy


def read_level(src: BinaryIO, header: Header) -> Level:
    """Read a level record and its zero-terminated tile offsets."""
    level = Level(_u32(src, "level width"), _u32(src, "level height"))
    level.tile_offsets = _offsets_until_zero(src, header)
    return level


def load_tile_none(src: BinaryIO, length: int, bpp: int,
                   width: int, height: int) -> bytes:
    """Read an uncompressed tile of ``length`` bytes."""
    return _exact(src, length, "tile data")


def load_tile_rle(src: BinaryIO, length: int, bpp: int,
                  width: int, height: int) -> bytes:
    """Read and decode an RLE tile into interleaved ``bpp``-byte pixels.

    Each channel is encoded separately.  Decoding stops at the first
    inconsistent run; pixels not reached stay zero.
    """
    if length == 0:
        raise ImageError("Empty tile")
    raw = src.read(length)
    amount_read = len(raw)
    if amount_read == 0:
        raise ImageError("Couldn't read tile data")
    load = raw.ljust(length, b"\0")

    def at(index: int) -> int:
        return load[index] if index < len(load) else 0

    pixels = width * height
    data = bytearray(pixels * bpp)
    t = 0
    for channel in range(bpp):
        d = channel
        size = pixels
        while size > 0:
            val = at(t)
            t += 1
            if val >= 128:
                run = 256 - val
                if run == 128:
                    run = (at(t) << 8) + at(t + 1)
                    t += 2
                if t + run >= amount_read or run > size:
                    break
                size -= run
                data[d:d + run * bpp:bpp] = load[t:t + run]
                t += run
            else:
                run = val + 1
                if run == 128:
                    run = (at(t) << 8) + at(t + 1)
                    t += 2
                if t >= amount_read or run > size:
                    break
                size -= run
                data[d:d + run * bpp:bpp] = bytes([at(t)]) * run
                t += 1
            d += run * bpp
        if size > 0:
            break
    return bytes(data)