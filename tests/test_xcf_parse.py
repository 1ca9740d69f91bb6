import io
import struct

import pytest

from imgload.surface import ImageError
from imgload.xcf_parse import (
    Compression,
    Header,
    ImageType,
    PropType,
    load_tile_none,
    load_tile_rle,
    read_channel,
    read_header,
    read_hierarchy,
    read_layer,
    read_level,
    read_offset,
    read_property,
    read_string,
)


def u32(*values):
    return b"".join(struct.pack(">I", v) for v in values)


def prop(pid, payload=b""):
    return struct.pack(">II", pid, len(payload)) + payload


def end():
    return prop(PropType.END)


def string(text):
    data = text.encode() + b"\0"
    return u32(len(data)) + data


def test_read_string():
    src = io.BytesIO(string("Background") + b"rest")
    assert read_string(src) == "Background"
    assert src.read() == b"rest"


def test_read_string_too_long_is_none():
    assert read_string(io.BytesIO(u32(50) + b"abc")) is None


def test_read_string_empty_stream_is_none():
    assert read_string(io.BytesIO(b"")) is None


def test_read_offset_32_bit():
    src = io.BytesIO(u32(0x1234, 0x5678))
    assert read_offset(src, Header(file_version=10)) == 0x1234
    assert src.tell() == 4


def test_read_offset_64_bit():
    src = io.BytesIO(u32(1, 2))
    assert read_offset(src, Header(file_version=11)) == (1 << 32) | 2
    assert src.tell() == 8


def test_read_offset_at_end_is_zero():
    assert read_offset(io.BytesIO(b""), Header()) == 0


def test_read_property_end():
    p = read_property(io.BytesIO(end()))
    assert p.id == PropType.END
    assert p.length == 0


def test_read_property_offsets_are_signed():
    p = read_property(io.BytesIO(prop(PropType.OFFSETS, struct.pack(">ii", -3, 7))))
    assert p.offset == (-3, 7)


def test_read_property_colormap():
    payload = u32(2) + bytes([1, 2, 3, 4, 5, 6])
    p = read_property(io.BytesIO(prop(PropType.COLORMAP, payload)))
    assert p.colormap == bytes([1, 2, 3, 4, 5, 6])


def test_read_property_color_and_compression():
    p = read_property(io.BytesIO(prop(PropType.COLOR, bytes([10, 20, 30]))))
    assert p.color == (10, 20, 30)
    c = read_property(io.BytesIO(prop(PropType.COMPRESSION, bytes([Compression.RLE]))))
    assert c.compression == Compression.RLE


def test_read_property_skips_unknown_payload():
    src = io.BytesIO(prop(PropType.TATTOO, b"\x00\x00\x00\x09") + b"X")
    p = read_property(src)
    assert p.id == PropType.TATTOO
    assert src.read() == b"X"


def test_read_property_truncated_raises():
    with pytest.raises(ImageError):
        read_property(io.BytesIO(struct.pack(">II", PropType.OPACITY, 4)))


def test_read_header_old_version():
    data = b"gimp xcf file\0" + u32(4, 3, ImageType.RGB) + end()
    header = read_header(io.BytesIO(data))
    assert header.file_version == 0
    assert header.precision == 150
    assert (header.width, header.height) == (4, 3)
    assert header.compression == Compression.NONE


def test_read_header_versioned_with_properties():
    data = (b"gimp xcf v011\0" + u32(2, 2, ImageType.INDEXED) + u32(150)
            + prop(PropType.COMPRESSION, bytes([Compression.RLE]))
            + prop(PropType.COLORMAP, u32(1) + bytes([9, 8, 7]))
            + end())
    header = read_header(io.BytesIO(data))
    assert header.file_version == 11
    assert header.image_type == ImageType.INDEXED
    assert header.compression == Compression.RLE
    assert header.colormap == bytes([9, 8, 7])
    assert header.colormap_size == 1


def test_read_header_truncated_raises():
    with pytest.raises(ImageError):
        read_header(io.BytesIO(b"gimp xcf"))


def test_read_layer():
    data = (u32(5, 6, 0) + string("Layer")
            + prop(PropType.OFFSETS, struct.pack(">ii", 1, -2))
            + prop(PropType.VISIBLE, u32(1))
            + end() + u32(100, 200))
    layer = read_layer(io.BytesIO(data), Header())
    assert (layer.width, layer.height) == (5, 6)
    assert layer.name == "Layer"
    assert (layer.offset_x, layer.offset_y) == (1, -2)
    assert layer.visible is True
    assert layer.hierarchy_offset == 100
    assert layer.mask_offset == 200


def test_read_channel():
    data = (u32(3, 3) + string("mask")
            + prop(PropType.OPACITY, u32(255))
            + prop(PropType.COLOR, bytes([0x11, 0x22, 0x33]))
            + prop(PropType.SELECTION)
            + prop(PropType.VISIBLE, u32(1))
            + end() + u32(64))
    channel = read_channel(io.BytesIO(data), Header())
    assert channel.opacity == 0xFF000000
    assert channel.color == 0x112233
    assert channel.selection is True
    assert channel.visible is True
    assert channel.hierarchy_offset == 64


def test_read_hierarchy_and_level():
    hierarchy = read_hierarchy(io.BytesIO(u32(64, 64, 4, 40, 80, 0)), Header())
    assert hierarchy.bpp == 4
    assert hierarchy.level_offsets == [40, 80]
    level = read_level(io.BytesIO(u32(64, 64, 7, 0)), Header())
    assert (level.width, level.height) == (64, 64)
    assert level.tile_offsets == [7]


def test_load_tile_none():
    assert load_tile_none(io.BytesIO(b"abcdef"), 4, 1, 2, 2) == b"abcd"
    with pytest.raises(ImageError):
        load_tile_none(io.BytesIO(b"ab"), 4, 1, 2, 2)


def test_load_tile_rle_repeat_run():
    assert load_tile_rle(io.BytesIO(bytes([3, 7])), 2, 1, 2, 2) == b"\x07" * 4


def test_load_tile_rle_literal_run():
    data = bytes([252, 1, 2, 3, 4, 0])
    assert load_tile_rle(io.BytesIO(data), len(data), 1, 2, 2) == bytes([1, 2, 3, 4])


def test_load_tile_rle_interleaves_channels():
    data = bytes([1, 9, 1, 5])
    assert load_tile_rle(io.BytesIO(data), len(data), 2, 1, 2) == bytes([9, 5, 9, 5])


def test_load_tile_rle_bogus_run_leaves_zeros():
    result = load_tile_rle(io.BytesIO(bytes([10, 7])), 2, 1, 2, 2)
    assert result == bytes(4)


def test_load_tile_rle_empty_raises():
    with pytest.raises(ImageError):
        load_tile_rle(io.BytesIO(b"abc"), 0, 1, 1, 1)
    with pytest.raises(ImageError):
        load_tile_rle(io.BytesIO(b""), 4, 1, 1, 1)