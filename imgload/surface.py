"""In-memory pixel surfaces shared by the image loaders."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ImageError(Exception):
    """Raised when image data cannot be decoded."""


class PixelFormat(enum.Enum):
    """Pixel layouts a surface can hold.

    Multi-byte pixels are packed little-endian, so a 32-bit format named
    ``ARGB8888`` holds the value ``0xAARRGGBB`` as bytes B, G, R, A.  Every
    format with alpha keeps the alpha byte last in memory.
    """

    INDEX8 = ("index8", 1, False)
    RGB555 = ("rgb555", 2, False)
    RGB24 = ("rgb24", 3, False)
    BGR24 = ("bgr24", 3, False)
    RGBA32 = ("rgba32", 4, True)
    BGRA32 = ("bgra32", 4, True)
    ARGB8888 = ("argb8888", 4, True)
    ABGR8888 = ("abgr8888", 4, True)

    def __init__(self, label: str, bytes_per_pixel: int, has_alpha: bool) -> None:
        self.label = label
        self.bytes_per_pixel = bytes_per_pixel
        self.has_alpha = has_alpha


@dataclass
class Color:
    """A palette entry."""

    r: int
    g: int
    b: int
    a: int = 255


@dataclass
class Rect:
    """An axis-aligned rectangle in pixel coordinates."""

    x: int
    y: int
    w: int
    h: int


class Surface:
    """A block of pixels with an optional palette and colour key."""

    def __init__(self, width: int, height: int, format: PixelFormat) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"invalid surface size {width}x{height}")
        self.width = width
        self.height = height
        self.format = format
        self.pixels = bytearray(self.pitch * height)
        self.palette: list[Color] | None = (
            [Color(255, 255, 255) for _ in range(256)]
            if format is PixelFormat.INDEX8
            else None
        )
        self.color_key: int | None = None

    @property
    def bytes_per_pixel(self) -> int:
        return self.format.bytes_per_pixel

    @property
    def pitch(self) -> int:
        """Bytes per row, rounded up to a multiple of four."""
        return (self.width * self.bytes_per_pixel + 3) & ~3

    def row(self, y: int) -> memoryview:
        """A writable view of the visible bytes of row ``y``."""
        if not 0 <= y < self.height:
            raise IndexError(f"row {y} outside surface of height {self.height}")
        start = y * self.pitch
        return memoryview(self.pixels)[start:start + self.width * self.bytes_per_pixel]

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} surface")
        return y * self.pitch + x * self.bytes_per_pixel

    def get_pixel(self, x: int, y: int) -> int:
        offset = self._offset(x, y)
        return int.from_bytes(self.pixels[offset:offset + self.bytes_per_pixel], "little")

    def set_pixel(self, x: int, y: int, value: int) -> None:
        offset = self._offset(x, y)
        bpp = self.bytes_per_pixel
        mask = (1 << (8 * bpp)) - 1
        self.pixels[offset:offset + bpp] = (value & mask).to_bytes(bpp, "little")

    def fill_rect(self, rect: Rect | None, value: int) -> None:
        """Fill ``rect`` (or the whole surface when None) with a packed pixel value."""
        if rect is None:
            x0, y0, x1, y1 = 0, 0, self.width, self.height
        else:
            x0, y0 = max(rect.x, 0), max(rect.y, 0)
            x1 = min(rect.x + rect.w, self.width)
            y1 = min(rect.y + rect.h, self.height)
        if x1 <= x0 or y1 <= y0:
            return
        bpp = self.bytes_per_pixel
        mask = (1 << (8 * bpp)) - 1
        span = (value & mask).to_bytes(bpp, "little") * (x1 - x0)
        for y in range(y0, y1):
            start = y * self.pitch + x0 * bpp
            self.pixels[start:start + len(span)] = span

    def blit(self, source: Surface, src_rect: Rect | None = None,
             dst_rect: Rect | None = None) -> Rect:
        """Copy pixels of ``source`` onto this surface, blending by alpha.

        Only the position of ``dst_rect`` is used.  Pixels matching the
        source colour key are skipped.  Returns the area actually drawn.
        """
        if source.format is not self.format:
            raise ImageError("blit between different pixel formats")
        if src_rect is None:
            sx, sy, sw, sh = 0, 0, source.width, source.height
        else:
            sx, sy, sw, sh = src_rect.x, src_rect.y, src_rect.w, src_rect.h
        x0, y0 = max(sx, 0), max(sy, 0)
        x1 = min(sx + sw, source.width)
        y1 = min(sy + sh, source.height)
        dx = (dst_rect.x if dst_rect else 0) + (x0 - sx)
        dy = (dst_rect.y if dst_rect else 0) + (y0 - sy)
        if dx < 0:
            x0 -= dx
            dx = 0
        if dy < 0:
            y0 -= dy
            dy = 0
        w = min(x1 - x0, self.width - dx)
        h = min(y1 - y0, self.height - dy)
        if w <= 0 or h <= 0:
            return Rect(dx, dy, 0, 0)

        bpp = self.bytes_per_pixel
        key = source.color_key
        blend = self.format.has_alpha
        for line in range(h):
            s_off = (y0 + line) * source.pitch + x0 * bpp
            d_off = (dy + line) * self.pitch + dx * bpp
            chunk = source.pixels[s_off:s_off + w * bpp]
            if key is None and not blend:
                self.pixels[d_off:d_off + w * bpp] = chunk
                continue
            for i in range(0, len(chunk), bpp):
                pixel = chunk[i:i + bpp]
                if key is not None and int.from_bytes(pixel, "little") == key:
                    continue
                target = d_off + i
                if blend:
                    self._blend_pixel(target, pixel)
                else:
                    self.pixels[target:target + bpp] = pixel
        return Rect(dx, dy, w, h)

    def _blend_pixel(self, offset: int, pixel: bytes) -> None:
        alpha = pixel[3]
        if alpha == 255:
            self.pixels[offset:offset + 4] = pixel
            return
        if alpha == 0:
            return
        inverse = 255 - alpha
        dst = self.pixels
        for channel in range(3):
            dst[offset + channel] = (
                pixel[channel] * alpha + dst[offset + channel] * inverse + 127
            ) // 255
        dst[offset + 3] = alpha + (dst[offset + 3] * inverse + 127) // 255