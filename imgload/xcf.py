"""GIMP XCF loader: composites the visible layers and channels of an image
onto a single ARGB8888 surface."""

from __future__ import annotations

from typing import BinaryIO, Callable

from .surface import ImageError, PixelFormat, Rect, Surface
from .xcf_parse import (
    Compression,
    Header,
    ImageType,
    Layer,
    load_tile_none,
    load_tile_rle,
    read_channel,
    read_header,
    read_hierarchy,
    read_layer,
    read_level,
    read_offset,
)

TileLoader = Callable[[BinaryIO, int, int, int, int], bytes]

_SIGNATURE = b"gimp xcf "
_SIGNATURE_SIZE = 14
_TILE = 64
_MAX_DIMENSION = 20000
_OPAQUE = 0xFF000000

_TILE_LOADERS: dict[int, TileLoader] = {
    Compression.NONE: load_tile_none,
    Compression.RLE: load_tile_rle,
}


def is_xcf(src: BinaryIO | None) -> bool:
    """Tell whether ``src`` starts with a GIMP XCF signature; the position is kept."""
    if src is None:
        return False
    start = src.tell()
    try:
        magic = src.read(_SIGNATURE_SIZE)
    finally:
        src.seek(start)
    return len(magic) == _SIGNATURE_SIZE and magic.startswith(_SIGNATURE)


def rgb_to_grey(value: int) -> int:
    """Convert a packed 0xRRGGBB colour to the packed grey of equal luminance."""
    r = (value >> 16) & 0xFF
    g = (value >> 8) & 0xFF
    b = value & 0xFF
    lum = int(0.2990 * r + 0.5870 * g + 0.1140 * b) & 0xFF
    return (lum << 16) | (lum << 8) | lum


def _colormap_rgb(header: Header, index: int) -> int:
    start = index * 3
    if start + 3 > len(header.colormap):
        raise ImageError(f"Gimp colormap index out of range ({index})")
    r, g, b = header.colormap[start:start + 3]
    return (r << 16) | (g << 8) | b


def _row_values(chunk: bytes, bpp: int, header: Header) -> list[int]:
    """Packed ARGB values for one row of tile data."""
    if bpp == 4:
        return [int.from_bytes(chunk[i:i + 4], "big") for i in range(0, len(chunk), 4)]
    if bpp == 3:
        return [_OPAQUE | int.from_bytes(chunk[i:i + 3], "big")
                for i in range(0, len(chunk), 3)]
    if bpp not in (1, 2):
        return []
    if header.image_type == ImageType.INDEXED:
        def rgb(index: int) -> int:
            return _colormap_rgb(header, index)
    elif header.image_type == ImageType.GREYSCALE:
        def rgb(index: int) -> int:
            return index * 0x010101
    else:
        raise ImageError(f"Unknown Gimp image type ({header.image_type})")
    values = []
    for i in range(0, len(chunk), bpp):
        alpha = chunk[i + 1] if bpp == 2 else 0xFF
        values.append((alpha << 24) | rgb(chunk[i]))
    return values


def _draw_tile(surface: Surface, header: Header, tile: bytes, bpp: int,
               tx: int, ty: int, ox: int, oy: int) -> None:
    stride = ox * bpp
    tile = tile.ljust(stride * oy, b"\0")
    for r in range(oy):
        y = ty + r
        if y >= surface.height or tx + ox > surface.width:
            break
        values = _row_values(tile[r * stride:(r + 1) * stride], bpp, header)
        if values:
            packed = b"".join(v.to_bytes(4, "little") for v in values)
            start = y * surface.pitch + tx * 4
            surface.pixels[start:start + len(packed)] = packed


def render_layer(surface: Surface, src: BinaryIO, header: Header,
                 layer: Layer, load_tile: TileLoader) -> None:
    """Decode the pixels of ``layer`` into the top-left corner of ``surface``.

    Raises ImageError for unsupported or damaged data; tiles decoded before
    the failure stay drawn.
    """
    src.seek(layer.hierarchy_offset)
    hierarchy = read_hierarchy(src, header)
    if hierarchy.bpp > 4:
        raise ImageError(f"Unknown Gimp image bpp ({hierarchy.bpp})")
    if hierarchy.width > _MAX_DIMENSION or hierarchy.height > _MAX_DIMENSION:
        raise ImageError(
            f"Gimp image too large ({hierarchy.width}x{hierarchy.height})")
    if not hierarchy.level_offsets:
        return

    # Only the first level is drawn, as GIMP does.
    src.seek(hierarchy.level_offsets[0])
    level = read_level(src, header)

    offsets = level.tile_offsets
    tx = ty = 0
    for j, offset in enumerate(offsets):
        src.seek(offset)
        ox = level.width % _TILE if tx + _TILE > level.width else _TILE
        oy = level.height % _TILE if ty + _TILE > level.height else _TILE
        length = ox * oy * 6
        following = offsets[j + 1] if j + 1 < len(offsets) else 0
        if following > offset:
            length = following - offset
        tile = load_tile(src, length, hierarchy.bpp, ox, oy)
        _draw_tile(surface, header, tile, hierarchy.bpp, tx, ty, ox, oy)

        tx += _TILE
        if tx >= level.width:
            tx = 0
            ty += _TILE
        if ty >= level.height:
            break


def _channel_value(image_type: int, color: int, opacity: int) -> int:
    if image_type in (ImageType.RGB, ImageType.INDEXED):
        return opacity | color
    if image_type == ImageType.GREYSCALE:
        return opacity | rgb_to_grey(color)
    return 0


def load_xcf(src: BinaryIO) -> Surface:
    """Decode an XCF image; on failure the position is restored and ImageError raised."""
    start = src.tell()
    try:
        return _decode(src)
    except ImageError:
        src.seek(start)
        raise


def _decode(src: BinaryIO) -> Surface:
    try:
        header = read_header(src)
    except ImageError:
        raise ImageError("Couldn't read header") from None

    load_tile = _TILE_LOADERS.get(header.compression)
    if load_tile is None:
        raise ImageError("Unsupported compression")

    fmt = PixelFormat.ARGB8888
    surface = Surface(header.width, header.height, fmt)

    header.layer_offsets = []
    while (offset := read_offset(src, header)) != 0:
        header.layer_offsets.append(offset)
    resume = src.tell()

    scratch = Surface(header.width, header.height, fmt)
    # Layers are stored topmost first, so draw them in reverse.
    for offset in reversed(header.layer_offsets):
        src.seek(offset)
        try:
            layer = read_layer(src, header)
        except ImageError:
            continue
        if not layer.visible:
            continue
        try:
            render_layer(scratch, src, header, layer, load_tile)
        except ImageError:
            pass  # whatever was decoded before the failure is still drawn
        surface.blit(
            scratch,
            Rect(0, 0, layer.width, layer.height),
            Rect(layer.offset_x, layer.offset_y, layer.width, layer.height),
        )

    src.seek(resume)
    channels = []
    while (offset := read_offset(src, header)) != 0:
        resume = src.tell()
        src.seek(offset)
        try:
            channels.append(read_channel(src, header))
        except ImageError:
            pass
        src.seek(resume)

    if channels:
        fill = Surface(header.width, header.height, fmt)
        for channel in channels:
            if channel.selection or not channel.visible:
                continue
            fill.fill_rect(None, _channel_value(header.image_type, channel.color,
                                                channel.opacity))
            surface.blit(fill)
    return surface