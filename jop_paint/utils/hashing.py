"""SHA-256 hashing for written `.paint` files.

Used by the split manifest so a batch of canvases can be verified after
copying them into the game's paintings folder.

Note: Module named `hashing.py` to avoid shadowing builtin `hash()`.
"""

import hashlib
from pathlib import Path
from typing import Union


def sha256_bytes(data: bytes) -> str:
    """SHA-256 hex digest (64 characters) of a byte string."""
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Union[str, Path], chunk_size: int = 1 << 20) -> str:
    """Digest a file on disk in chunks, as listed in split manifests.

    Matches ``sha256_bytes(path.read_bytes())`` without holding large
    source images in memory.

    Raises
    ------
    FileNotFoundError
        If ``path`` is not a regular file
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Cannot hash missing file: {path}")

    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()
