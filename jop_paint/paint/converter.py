"""Pixel conversion engine: raster ⇄ PaintCanvas, multi-canvas split.

Public API:
    image_to_paint(raster, canvas_type, title, author, name=None) → PaintCanvas
    paint_to_image(canvas, scale=1) → PIL.Image (RGBA)
    split_image_to_multi_canvas(raster, canvas_type, grid_width, grid_height,
                                title, author, generation, version) → [CanvasTile]
    split_image_collecting_errors(...) → ([CanvasTile], [TileError])
    constrain_to_power_of_two(raster) → PIL.Image
    image_scale_for_size(canvas_type, size) → int

Pipeline (image → paint):
    1. Normalise raster to RGBA (raster.as_rgba_image)
    2. Nearest-neighbour resample to the canvas size
    3. Pack pixels row-major, top-to-bottom, left-to-right, alpha forced opaque

Multi-canvas naming:
    tile (row, col), 1-indexed in names:
        title    "{title}_{row+1}_{col+1}" or "" without a title
        filename "{title}_{row+1}_{col+1}.paint" or "canvas_{row+1}_{col+1}.paint"
        name     "{ROOT_UUID}_{base + row*grid_width + col}", one base timestamp
                 per batch, so names are unique within a batch made in one second

All operations are synchronous and pure; errors propagate to the caller.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .canvas_types import get_canvas_type
from .document import FRESH_DEFAULTS, PAINT_EXTENSION, PaintCanvas, generate_name
from .pixels import pixels_to_rgb_array, rgb_array_to_pixels
from .raster import Raster, as_rgba_image, crop_tile, resize_nearest, to_rgb_array

logger = logging.getLogger(__name__)


@dataclass
class CanvasTile:
    """One canvas of a multi-canvas split."""

    canvas: PaintCanvas
    filename: str
    row: int
    col: int


class TileError(NamedTuple):
    """Failure of one tile in split_image_collecting_errors()."""

    row: int
    col: int
    error: Exception


def image_to_paint(
    raster: Raster,
    canvas_type: int,
    title: Optional[str] = "",
    author: Optional[str] = "",
    name: Optional[str] = None,
    *,
    timestamp: Optional[int] = None,
) -> PaintCanvas:
    """Convert a raster into a freshly converted PaintCanvas.

    Parameters
    ----------
    raster : Union[Image.Image, np.ndarray]
        Source image, any size
    canvas_type : int
        Target canvas type id (0-3)
    title, author : Optional[str]
        Metadata, None treated as ""
    name : Optional[str]
        Unique id; generated as ``{ROOT_UUID}_{timestamp}`` when empty
    timestamp : Optional[int]
        Epoch seconds used for the generated name, default now

    Returns
    -------
    PaintCanvas
        Canvas with FRESH_DEFAULTS generation/version

    Raises
    ------
    UnknownCanvasTypeError
        If ``canvas_type`` is not a known id
    """
    info = get_canvas_type(canvas_type)
    img = resize_nearest(as_rgba_image(raster), info.size)
    pixels = rgb_array_to_pixels(to_rgb_array(img))

    return PaintCanvas(
        canvas_type=info.id,
        title=title or "",
        author=author or "",
        name=name or generate_name(timestamp),
        pixels=pixels,
        generation=FRESH_DEFAULTS.generation,
        version=FRESH_DEFAULTS.version,
    )


def paint_to_image(canvas: PaintCanvas, scale: int = 1) -> Image.Image:
    """Render a canvas as an RGBA image, upscaled by pixel replication.

    Parameters
    ----------
    canvas : PaintCanvas
        Source document; missing pixels render opaque black, excess ignored
    scale : int
        Integer upscale factor; values below 1 are clamped to 1

    Returns
    -------
    Image.Image
        RGBA image of exactly (width*scale, height*scale), alpha 255
    """
    scale = max(1, int(scale))
    info = canvas.info
    rgb = pixels_to_rgb_array(canvas.pixels, info.width, info.height)
    if scale > 1:
        rgb = np.repeat(np.repeat(rgb, scale, axis=0), scale, axis=1)
    alpha = np.full(rgb.shape[:2] + (1,), 255, dtype=np.uint8)
    return Image.fromarray(np.concatenate([rgb, alpha], axis=2))


def tile_filename(title: Optional[str], row: int, col: int) -> str:
    """File name of tile (row, col), both 0-indexed."""
    stem = title if title else "canvas"
    return f"{stem}_{row + 1}_{col + 1}{PAINT_EXTENSION}"


def _iter_tiles(
    raster: Raster,
    canvas_type: int,
    grid_width: int,
    grid_height: int,
    title: Optional[str],
    author: Optional[str],
    generation: int,
    version: int,
    timestamp: Optional[int],
):
    """Yield (row, col, thunk) per tile, row-major; thunk builds the CanvasTile."""
    info = get_canvas_type(canvas_type)
    if grid_width < 1 or grid_height < 1:
        raise ValueError(f"Grid must be at least 1x1, got {grid_width}x{grid_height}")

    total = resize_nearest(
        as_rgba_image(raster), (info.width * grid_width, info.height * grid_height)
    )
    base_timestamp = int(time.time()) if timestamp is None else int(timestamp)
    logger.debug(
        f"Splitting {total.width}x{total.height} into {grid_width}x{grid_height} "
        f"{info.name} canvases"
    )

    for row in range(grid_height):
        for col in range(grid_width):
            def build(row=row, col=col) -> CanvasTile:
                section = crop_tile(
                    total, col * info.width, row * info.height, info.width, info.height
                )
                section_title = f"{title}_{row + 1}_{col + 1}" if title else ""
                canvas = image_to_paint(section, info.id, section_title, author)
                canvas.generation = generation
                canvas.version = version
                canvas.name = generate_name(base_timestamp + row * grid_width + col)
                return CanvasTile(canvas, tile_filename(title, row, col), row, col)

            yield row, col, build


def split_image_to_multi_canvas(
    raster: Raster,
    canvas_type: int,
    grid_width: int,
    grid_height: int,
    title: Optional[str] = "",
    author: Optional[str] = "",
    generation: int = FRESH_DEFAULTS.generation,
    version: int = FRESH_DEFAULTS.version,
    *,
    timestamp: Optional[int] = None,
) -> List[CanvasTile]:
    """Split one image across a grid of canvases (fail fast).

    Parameters
    ----------
    raster : Union[Image.Image, np.ndarray]
        Source image, resampled to (width*grid_width, height*grid_height)
    canvas_type : int
        Canvas type id of every tile
    grid_width, grid_height : int
        Grid size in canvases (>= 1)
    title, author : Optional[str]
        Base title (suffixed per tile) and author
    generation, version : int
        Metadata written to every tile
    timestamp : Optional[int]
        Base epoch seconds for tile names, default now

    Returns
    -------
    List[CanvasTile]
        Tiles in row-major order

    Raises
    ------
    UnknownCanvasTypeError
        If ``canvas_type`` is not a known id
    ValueError
        If a grid dimension is below 1

    Notes
    -----
    The first failing tile aborts the whole batch; no partial list is returned.
    """
    return [
        build()
        for _, _, build in _iter_tiles(
            raster, canvas_type, grid_width, grid_height,
            title, author, generation, version, timestamp,
        )
    ]


def split_image_collecting_errors(
    raster: Raster,
    canvas_type: int,
    grid_width: int,
    grid_height: int,
    title: Optional[str] = "",
    author: Optional[str] = "",
    generation: int = FRESH_DEFAULTS.generation,
    version: int = FRESH_DEFAULTS.version,
    *,
    timestamp: Optional[int] = None,
) -> Tuple[List[CanvasTile], List[TileError]]:
    """Like split_image_to_multi_canvas() but keeps going past tile failures.

    Errors raised before any tile is built (unknown canvas type, bad grid,
    unreadable raster) still propagate.

    Returns
    -------
    Tuple[List[CanvasTile], List[TileError]]
        Converted tiles and per-tile failures, both in row-major order
    """
    tiles: List[CanvasTile] = []
    errors: List[TileError] = []
    for row, col, build in _iter_tiles(
        raster, canvas_type, grid_width, grid_height,
        title, author, generation, version, timestamp,
    ):
        try:
            tiles.append(build())
        except Exception as e:
            errors.append(TileError(row, col, e))
    return tiles, errors


def constrain_to_power_of_two(raster: Raster) -> Image.Image:
    """Nearest-neighbour resize so each side is the next power of two."""
    img = as_rgba_image(raster)
    width = 2 ** math.ceil(math.log2(img.width))
    height = 2 ** math.ceil(math.log2(img.height))
    return resize_nearest(img, (width, height))


def image_scale_for_size(canvas_type: int, size: Union[int, str, None] = "native") -> int:
    """Integer scale so the longer canvas side is at most ``size`` pixels.

    Parameters
    ----------
    canvas_type : int
        Canvas type id
    size : Union[int, str, None]
        Target size in pixels, or "native" / None for scale 1

    Returns
    -------
    int
        Scale factor >= 1
    """
    if size is None or size == "native":
        return 1
    info = get_canvas_type(canvas_type)
    return max(1, int(size) // max(info.width, info.height))
