"""Atomic filesystem operations for `.paint` files, images and YAML.

Provides:
    - Atomic writes: tmp file → fsync → rename (no half-written .paint files)
    - Image load/save through Pillow (the only place image formats are decoded)
    - YAML load/save (configs, split manifests)
    - Output file name sanitising

All paths use pathlib.Path.

Usage:
    from jop_paint.utils import fs
    fs.atomic_write_bytes(out_dir / "Sunset_1_1.paint", data)
    img = fs.load_image("sunset.png")
    fs.atomic_save_image(preview, "preview.png")
"""

import os
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import numpy as np
import yaml
from PIL import Image

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9]')


@contextmanager
def _staged(path: Path, tmp_path: Path, what: str) -> Iterator[Path]:
    """Yield ``tmp_path`` for writing, then move it over ``path``.

    On any failure the staged file is removed and RuntimeError raised.
    """
    ensure_dir(path.parent)
    try:
        yield tmp_path
        tmp_path.replace(path)
    except Exception as e:
        tmp_path.unlink(missing_ok=True)
        raise RuntimeError(f"Failed to {what} {path} atomically: {e}") from e


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory (and parents) if missing, return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If writing or renaming fails (temporary file is removed)
    """
    path = Path(path)
    with _staged(path, path.with_name(path.name + tmp_suffix), "write") as staged:
        with open(staged, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())


def atomic_write_text(path: Union[str, Path], text: str, encoding: str = "utf-8") -> None:
    """Write text to file atomically."""
    atomic_write_bytes(path, text.encode(encoding))


def read_bytes(path: Union[str, Path]) -> bytes:
    """Read a whole file.

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_bytes()


def load_image(path: Union[str, Path]) -> Image.Image:
    """Open an image file with Pillow and load it fully.

    Returns
    -------
    Image.Image
        Decoded image; the file handle is already closed

    Raises
    ------
    FileNotFoundError
        If the file doesn't exist
    ValueError
        If Pillow cannot identify the image format
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except Image.UnidentifiedImageError as e:
        raise ValueError(f"Unsupported image file {path}: {e}") from e


def atomic_save_image(
    img: Union[np.ndarray, Image.Image],
    path: Union[str, Path],
    pil_kwargs: Optional[Dict[str, Any]] = None
) -> None:
    """Save image atomically (prevents partial reads).

    Parameters
    ----------
    img : Union[np.ndarray, Image.Image]
        Pillow image, or uint8 array (H, W), (H, W, 3) or (H, W, 4)
    path : Union[str, Path]
        Target file path (extension determines format)
    pil_kwargs : Optional[Dict[str, Any]]
        Extra kwargs for PIL.Image.save (e.g., quality=95)

    Notes
    -----
    JPEG has no alpha channel; RGBA images are flattened to RGB for
    .jpg/.jpeg targets.
    """
    path = Path(path)

    if isinstance(img, np.ndarray):
        if img.dtype != np.uint8:
            img = np.clip(img, 0, 255).astype(np.uint8)
        if img.ndim == 3 and img.shape[2] == 1:
            img = img.squeeze(2)
        img = Image.fromarray(img)

    if path.suffix.lower() in ('.jpg', '.jpeg') and img.mode not in ('RGB', 'L'):
        img = img.convert('RGB')

    # Keep the real extension last so Pillow picks the right encoder
    with _staged(path, path.with_name(path.stem + ".tmp" + path.suffix), "save image") as staged:
        img.save(staged, **(pil_kwargs or {}))


def atomic_yaml_dump(obj: Any, path: Union[str, Path]) -> None:
    """Save object as YAML atomically (safe_dump, key order preserved)."""
    atomic_write_text(path, yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails
    """
    text = read_bytes(path).decode("utf-8")
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def safe_filename(title: Optional[str], ext: str, default: str = "painting") -> str:
    """Derive an output file name from a painting title.

    Every character outside [a-zA-Z0-9] becomes '_'; an empty title falls
    back to ``default``.

    Examples
    --------
    >>> safe_filename("My Sunset!", "paint")
    'My_Sunset_.paint'
    >>> safe_filename("", ".png")
    'painting.png'
    """
    stem = _UNSAFE_CHARS.sub('_', title or default)
    return f"{stem}.{ext.lstrip('.')}"
