# imgload

Small image decoders written in plain Python with no third-party
dependencies. Each one reads from a seekable binary stream and returns an
in-memory `Surface` of pixels.

## What it handles

| Format | Detection | Decoding |
| ------ | --------- | -------- |
| PNM (PBM, PGM, PPM; ASCII and binary) | `imgload.pnm.is_pnm` | `imgload.pnm.load_pnm` |
| TGA (8/15/16/24/32 bpp, raw or RLE) | — | `imgload.tga.load_tga` |
| GIMP XCF (uncompressed or RLE tiles) | `imgload.xcf.is_xcf` | `imgload.xcf.load_xcf` |
| QOI | `imgload.detect.is_qoi` | — |
| SVG | `imgload.detect.is_svg` | — |
| TIFF | `imgload.detect.is_tif` | — |
| WebP | `imgload.webp.is_webp` | — |

Detection functions return a bool, accept `None` (which gives `False`), and
always seek the stream back to where it started. Loaders restore the stream
position when they fail.

## Installing

```
pip install .
```

## Loading an image

```python
from imgload.pnm import load_pnm

with open("picture.ppm", "rb") as f:
    surface = load_pnm(f)

print(surface.width, surface.height, surface.format)
print(surface.get_pixel(0, 0))
```

- **PNM**: PBM and PGM load as `PixelFormat.INDEX8` surfaces with a palette
  (PBM: index 0 is white, 1 is black; PGM: a 256-entry grey ramp). PPM loads
  as `PixelFormat.RGB24`. Samples with a maximum value below 255 are scaled
  up to 0–255; maximum values above 255 are rejected.
- **TGA**: colour-mapped and greyscale images load as `INDEX8`; true-colour
  images load as `RGB555` (15/16 bpp), `BGR24` or `BGRA32`. With a 32-bit
  colour map, the last entry whose alpha is below 128 becomes the surface's
  `color_key`. Interleaved and right-to-left images are rejected.
- **XCF**: visible layers are composited bottom to top onto one
  `PixelFormat.ARGB8888` surface, followed by visible non-selection
  channels filled with their colour and opacity. RGB, greyscale and indexed
  images are supported, uncompressed or RLE.

```python
from imgload.xcf import is_xcf, load_xcf

with open("layers.xcf", "rb") as f:
    if is_xcf(f):
        composite = load_xcf(f)
```

The lower-level XCF readers live in `imgload.xcf_parse` (`read_header`,
`read_layer`, `read_channel`, `read_hierarchy`, `read_level`,
`read_property`, `read_offset`, `read_string`, `load_tile_none`,
`load_tile_rle`) together with the `Header`, `Layer`, `Channel`,
`Hierarchy`, `Level` and `Property` dataclasses. `imgload.xcf` also offers
`render_layer` and `rgb_to_grey`.

## Surfaces

`imgload.surface.Surface(width, height, format)` holds a `PixelFormat`, a
`pixels` bytearray with rows padded to a multiple of four bytes, a
`palette` of `Color` values for `INDEX8` surfaces, and an optional
`color_key`. Multi-byte pixels are packed little-endian.

- `bytes_per_pixel` and `pitch` are properties.
- `row(y)` returns a writable memoryview of a row's visible bytes.
- `get_pixel(x, y)` / `set_pixel(x, y, value)` work with packed integers.
- `fill_rect(rect, value)` fills a clipped `Rect`, or the whole surface when
  `rect` is `None`.
- `blit(source, src_rect=None, dst_rect=None)` copies between surfaces of the
  same format, skipping colour-keyed pixels and alpha-blending when the format
  has alpha; it returns the `Rect` actually drawn.

## WebP sizing

`imgload.webp.webp_data_size(src)` returns the number of bytes from the
current position to the end of a WebP stream, raising `ImageError` when the
data does not start with a WebP header.

## SVG sizing helpers

`imgload.detect.svg_scale(image_width, image_height, width, height)` gives
the scale that fits an image into the requested size while keeping its aspect
ratio (a non-positive requested dimension is left free; with both free the
scale is 1). `svg_surface_size` gives the resulting pixel size, rounded up.
Both raise `ImageError` when the image size is not positive.

## Errors

Malformed or unsupported input raises `imgload.surface.ImageError` with a
short message such as `"file truncated"` or `"Unsupported TGA format"`.

## What it does not do

- It does not decode QOI, SVG, TIFF or WebP pixel data; for those formats
  it only recognises the signature (and, for SVG and WebP, computes sizes).
- It does not write or save images in any format.
- It has no command-line tool; it is a library only.

## Running the tests

```
pip install .[test]
pytest
```