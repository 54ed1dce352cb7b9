"""ARGB pixel packing and colour transcoding.

Pixels are stored as 32-bit two's-complement ints with bytes A, R, G, B from
most to least significant. Alpha is always written fully opaque; it is
discarded when decoding to a display colour.

Provides:
    - Scalar helpers: to_unsigned32, to_signed32, pack_rgb, argb_to_hex, hex_to_rgb
    - Vectorised helpers (numpy): pixels_to_rgb_array, rgb_array_to_pixels
    - normalize_pixels: pad with opaque black / truncate to the canvas area

Invariants:
    - pack_rgb(0x12, 0x34, 0x56) == to_signed32(0xFF123456)
    - argb_to_hex(pack_rgb(r, g, b)) == f"{r:02x}{g:02x}{b:02x}"
"""

from typing import List, Sequence, Tuple

import numpy as np

ALPHA_OPAQUE = 0xFF000000
# 0xFF000000 as a signed 32-bit int
OPAQUE_BLACK = -16777216


def to_unsigned32(value: int) -> int:
    """Reinterpret a 32-bit pattern as unsigned."""
    return value & 0xFFFFFFFF


def to_signed32(value: int) -> int:
    """Reinterpret a 32-bit pattern as two's-complement signed."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def pack_rgb(r: int, g: int, b: int) -> int:
    """Pack an RGB triple into a signed opaque ARGB int.

    Parameters
    ----------
    r, g, b : int
        Channel values in [0, 255]

    Returns
    -------
    int
        Signed 32-bit value of ``0xFF000000 | r<<16 | g<<8 | b``

    Raises
    ------
    ValueError
        If a channel is outside [0, 255]
    """
    for channel, v in (("r", r), ("g", g), ("b", b)):
        if not 0 <= v <= 255:
            raise ValueError(f"Channel {channel}={v} out of range [0, 255]")
    return to_signed32(ALPHA_OPAQUE | (r << 16) | (g << 8) | b)


def argb_to_hex(pixel: int) -> str:
    """Render a stored pixel as a 6-digit RGB hex string (alpha dropped)."""
    return f"{to_unsigned32(pixel):08x}"[2:]


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """Parse a 6-digit RGB hex string (leading '#' allowed)."""
    color = color.lstrip("#")
    if len(color) != 6:
        raise ValueError(f"Expected 6 hex digits, got {color!r}")
    return int(color[0:2], 16), int(color[2:4], 16), int(color[4:6], 16)


def normalize_pixels(pixels: Sequence[int], area: int) -> List[int]:
    """Fit a pixel sequence to ``area`` entries.

    Missing entries become opaque black, excess entries are dropped. Never
    raises on length mismatch.
    """
    out = [int(p) for p in pixels[:area]]
    if len(out) < area:
        out.extend([OPAQUE_BLACK] * (area - len(out)))
    return out


def pixels_to_rgb_array(pixels: Sequence[int], width: int, height: int) -> np.ndarray:
    """Unpack stored pixels into an (H, W, 3) uint8 RGB array.

    Parameters
    ----------
    pixels : Sequence[int]
        Signed ARGB ints, row-major; padded/truncated to width*height
    width, height : int
        Canvas size

    Returns
    -------
    np.ndarray
        RGB image, shape (height, width, 3), dtype uint8
    """
    flat = np.asarray(normalize_pixels(pixels, width * height), dtype=np.int64)
    unsigned = (flat & 0xFFFFFFFF).astype(np.uint32)
    rgb = np.stack(
        [(unsigned >> 16) & 0xFF, (unsigned >> 8) & 0xFF, unsigned & 0xFF],
        axis=-1,
    ).astype(np.uint8)
    return rgb.reshape(height, width, 3)


def rgb_array_to_pixels(rgb: np.ndarray) -> List[int]:
    """Pack an (H, W, 3+) uint8 array into signed opaque ARGB ints, row-major.

    Channels beyond the third (alpha) are ignored; alpha is forced to 0xFF.
    """
    if rgb.ndim != 3 or rgb.shape[2] < 3:
        raise ValueError(f"Expected (H, W, 3) or (H, W, 4) array, got shape {rgb.shape}")
    channels = rgb[:, :, :3].astype(np.uint32)
    packed = (
        np.uint32(ALPHA_OPAQUE)
        | (channels[:, :, 0] << 16)
        | (channels[:, :, 1] << 8)
        | channels[:, :, 2]
    )
    return packed.reshape(-1).view(np.int32).tolist()
