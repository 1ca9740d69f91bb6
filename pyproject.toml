[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "imgload"
version = "0.1.0"
description = "Pure-Python decoders for PNM, TGA and GIMP XCF images, with signature checks for QOI, SVG, TIFF and WebP"
requires-python = ">=3.10"
dependencies = []
keywords = ["image", "pnm", "pbm", "pgm", "ppm", "tga", "targa", "xcf", "gimp", "qoi", "svg", "tiff", "webp", "decoder"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["imgload"]

[tool.pytest.ini_options]
addopts = "-ra"
