"""Painting document model and pixel conversion engine.

Convenience imports:
    from jop_paint.paint import parse_paint_file, create_paint_file
    from jop_paint.paint import image_to_paint, paint_to_image, split_image_to_multi_canvas
"""

from .canvas_types import (
    CANVAS_TYPES,
    CanvasType,
    PaintError,
    UnknownCanvasTypeError,
    get_canvas_type,
)
from .converter import (
    CanvasTile,
    TileError,
    constrain_to_power_of_two,
    image_scale_for_size,
    image_to_paint,
    paint_to_image,
    split_image_collecting_errors,
    split_image_to_multi_canvas,
    tile_filename,
)
from .document import (
    FRESH_DEFAULTS,
    ROOT_UUID,
    UNSET_DEFAULTS,
    PaintCanvas,
    check_title_author,
    create_paint_file,
    from_tag_tree,
    generate_name,
    parse_paint_file,
    to_tag_tree,
)
from .pixels import argb_to_hex, hex_to_rgb, pack_rgb

__all__ = [
    'CANVAS_TYPES',
    'CanvasTile',
    'CanvasType',
    'FRESH_DEFAULTS',
    'PaintCanvas',
    'PaintError',
    'ROOT_UUID',
    'TileError',
    'UNSET_DEFAULTS',
    'UnknownCanvasTypeError',
    'argb_to_hex',
    'check_title_author',
    'constrain_to_power_of_two',
    'create_paint_file',
    'from_tag_tree',
    'generate_name',
    'get_canvas_type',
    'hex_to_rgb',
    'image_scale_for_size',
    'image_to_paint',
    'pack_rgb',
    'paint_to_image',
    'parse_paint_file',
    'split_image_collecting_errors',
    'split_image_to_multi_canvas',
    'tile_filename',
    'to_tag_tree',
]
