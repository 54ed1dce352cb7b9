"""jop-paint: Joy of Painting `.paint` file converter.

This package reads and writes the binary painting documents used by the
Joy of Painting mod and converts them to and from raster images, including
splitting one large image across a grid of in-game canvases.

Architecture layers (strict one-way dependency):
    jop_paint/cli.py → jop_paint/paint/ → jop_paint/nbt/ → jop_paint/utils/

Key invariants:
    - All multi-byte numerics on the wire are big-endian
    - Pixels are signed 32-bit ARGB ints, row-major, top-left origin
    - Resampling is nearest-neighbour only (pixel-art fidelity)
    - author/title are persisted as a pair or not at all
    - YAML-only configs
"""

__version__ = "1.0.0"
