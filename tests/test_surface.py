import pytest

from imgload.surface import Color, ImageError, PixelFormat, Rect, Surface


def test_pitch_is_aligned_and_large_enough():
    for fmt in PixelFormat:
        for width in range(1, 9):
            surface = Surface(width, 2, fmt)
            assert surface.pitch % 4 == 0
            assert surface.pitch >= width * fmt.bytes_per_pixel
            assert len(surface.pixels) == surface.pitch * 2


def test_bytes_per_pixel_follows_format():
    assert Surface(1, 1, PixelFormat.RGB24).bytes_per_pixel == PixelFormat.RGB24.bytes_per_pixel
    assert Surface(1, 1, PixelFormat.ARGB8888).bytes_per_pixel == 4


def test_set_get_roundtrip():
    surface = Surface(3, 3, PixelFormat.ARGB8888)
    surface.set_pixel(2, 1, 0x11223344)
    assert surface.get_pixel(2, 1) == 0x11223344
    assert surface.get_pixel(0, 0) == 0


def test_pixels_are_little_endian():
    surface = Surface(1, 1, PixelFormat.ARGB8888)
    surface.set_pixel(0, 0, 0xAABBCCDD)
    assert bytes(surface.row(0)) == bytes([0xDD, 0xCC, 0xBB, 0xAA])


def test_out_of_range_pixel():
    surface = Surface(2, 2, PixelFormat.RGB24)
    with pytest.raises(IndexError):
        surface.get_pixel(2, 0)
    with pytest.raises(IndexError):
        surface.row(5)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Surface(-1, 2, PixelFormat.RGB24)


def test_index8_has_default_palette():
    surface = Surface(1, 1, PixelFormat.INDEX8)
    assert len(surface.palette) == 256
    assert Surface(1, 1, PixelFormat.RGB24).palette is None


def test_fill_whole_and_partial():
    surface = Surface(4, 3, PixelFormat.RGB555)
    surface.fill_rect(None, 0x1234)
    assert all(surface.get_pixel(x, y) == 0x1234 for x in range(4) for y in range(3))
    surface.fill_rect(Rect(1, 1, 10, 10), 0x7)
    assert surface.get_pixel(0, 0) == 0x1234
    assert surface.get_pixel(3, 2) == 0x7
    assert surface.get_pixel(1, 1) == 0x7


def test_blit_copies_plain_format():
    src = Surface(2, 2, PixelFormat.RGB24)
    src.set_pixel(0, 0, 0x010203)
    src.set_pixel(1, 1, 0x040506)
    dst = Surface(4, 4, PixelFormat.RGB24)
    drawn = dst.blit(src, None, Rect(1, 2, 0, 0))
    assert drawn == Rect(1, 2, 2, 2)
    assert dst.get_pixel(1, 2) == 0x010203
    assert dst.get_pixel(2, 3) == 0x040506


def test_blit_clips_negative_destination():
    src = Surface(3, 3, PixelFormat.RGB24)
    src.set_pixel(2, 2, 0x0A0B0C)
    dst = Surface(3, 3, PixelFormat.RGB24)
    drawn = dst.blit(src, None, Rect(-2, -2, 0, 0))
    assert drawn == Rect(0, 0, 1, 1)
    assert dst.get_pixel(0, 0) == 0x0A0B0C


def test_blit_alpha_opaque_and_transparent():
    src = Surface(2, 1, PixelFormat.ARGB8888)
    src.set_pixel(0, 0, 0xFF102030)
    src.set_pixel(1, 0, 0x00405060)
    dst = Surface(2, 1, PixelFormat.ARGB8888)
    dst.fill_rect(None, 0xFF0A0B0C)
    dst.blit(src, None, None)
    assert dst.get_pixel(0, 0) == 0xFF102030
    assert dst.get_pixel(1, 0) == 0xFF0A0B0C


def test_blit_color_key_skips():
    src = Surface(2, 1, PixelFormat.INDEX8)
    src.set_pixel(0, 0, 3)
    src.set_pixel(1, 0, 5)
    src.color_key = 3
    dst = Surface(2, 1, PixelFormat.INDEX8)
    dst.fill_rect(None, 9)
    dst.blit(src, None, None)
    assert dst.get_pixel(0, 0) == 9
    assert dst.get_pixel(1, 0) == 5


def test_blit_format_mismatch():
    with pytest.raises(ImageError):
        Surface(1, 1, PixelFormat.RGB24).blit(Surface(1, 1, PixelFormat.BGR24), None, None)


def test_color_default_alpha():
    assert Color(1, 2, 3) == Color(1, 2, 3, 255)