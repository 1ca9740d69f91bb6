"""Pure-Python PNM, TGA and XCF decoders, pixel surfaces, and signature checks for QOI, SVG, TIFF and WebP."""

__version__ = "0.1.0"

__all__ = ["surface", "pnm", "tga", "detect", "webp", "xcf_parse", "xcf"]