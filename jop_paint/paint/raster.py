"""Raster boundary: Pillow images and numpy arrays.

The conversion engine accepts either a ``PIL.Image.Image`` (any mode) or a
numpy array shaped (H, W), (H, W, 3) or (H, W, 4). Everything is normalised
to an RGBA Pillow image before sampling.

Resampling is nearest-neighbour only. Smoothing filters blend neighbouring
colours, which destroys pixel art on 16/32 px canvases.

Fully transparent pixels read back as black RGB, the way a browser 2D canvas
reports them after a draw.
"""

from typing import Tuple, Union

import numpy as np
from PIL import Image

Raster = Union[Image.Image, np.ndarray]


def as_rgba_image(raster: Raster) -> Image.Image:
    """Normalise a raster to an RGBA Pillow image.

    Parameters
    ----------
    raster : Union[Image.Image, np.ndarray]
        Pillow image, or uint8 array (H, W), (H, W, 3) or (H, W, 4).
        Float arrays are interpreted as [0, 1].

    Returns
    -------
    Image.Image
        New RGBA image (the caller's raster is never modified or retained)

    Raises
    ------
    TypeError
        If the raster is neither an image nor an array
    ValueError
        If the array shape is not an image shape
    """
    if isinstance(raster, Image.Image):
        return raster.convert("RGBA")
    if not isinstance(raster, np.ndarray):
        raise TypeError(f"Unsupported raster type: {type(raster).__name__}")

    arr = raster
    if arr.ndim == 3 and arr.shape[2] == 1:
        arr = arr[:, :, 0]
    if arr.ndim not in (2, 3) or (arr.ndim == 3 and arr.shape[2] not in (3, 4)):
        raise ValueError(f"Expected (H, W), (H, W, 3) or (H, W, 4) array, got {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError(f"Empty raster: {arr.shape}")

    if np.issubdtype(arr.dtype, np.floating):
        arr = np.clip(arr, 0.0, 1.0) * 255.0 + 0.5
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    return Image.fromarray(np.ascontiguousarray(arr)).convert("RGBA")


def resize_nearest(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Resample to ``size`` = (width, height) with nearest-neighbour sampling."""
    width, height = size
    if width < 1 or height < 1:
        raise ValueError(f"Target size must be positive, got {size}")
    return img.resize((width, height), Image.Resampling.NEAREST)


def crop_tile(img: Image.Image, x: int, y: int, width: int, height: int) -> Image.Image:
    """Copy the ``width`` × ``height`` region whose top-left corner is (x, y)."""
    return img.crop((x, y, x + width, y + height))


def to_rgb_array(img: Image.Image) -> np.ndarray:
    """RGBA image → (H, W, 3) uint8 array, transparent pixels black."""
    rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    rgb = rgba[:, :, :3].copy()
    rgb[rgba[:, :, 3] == 0] = 0
    return rgb
