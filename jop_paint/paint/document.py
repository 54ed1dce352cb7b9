"""Painting document model: tag tree ⇄ PaintCanvas.

Reserved compound fields of a `.paint` file:
    generation  numeric, always written
    ct          canvas type id 0-3, always written
    pixels      int array, width × height signed ARGB ints, always written
    v           numeric version, always written
    name        unique id string, always written
    author      string, written only together with title
    title       string, written only together with author

Reading leaves ``generation`` / ``v`` as None when absent so callers can tell
"absent" from "present and zero". Writing applies the value-driven narrowing
of ``jop_paint.nbt.infer_tag`` (``ct=1`` goes out as a BYTE tag).

Two default conventions exist for generation/version and are kept apart:
    FRESH_DEFAULTS  (1, 2)   canvas freshly converted from an image
    UNSET_DEFAULTS  (0, 99)  no source document; the game assigns values
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Union

from ..nbt import FormatError, NBTError, Tag, TagType, decode, encode, infer_tag
from .canvas_types import CanvasType, get_canvas_type
from .pixels import argb_to_hex, normalize_pixels, to_signed32

logger = logging.getLogger(__name__)

ROOT_UUID = "d1ebe29f-f4e9-4572-83cd-8b2cdbfc2420"

PAINT_EXTENSION = ".paint"


class MetadataDefaults(NamedTuple):
    """generation / version pair."""

    generation: int
    version: int


FRESH_DEFAULTS = MetadataDefaults(generation=1, version=2)
UNSET_DEFAULTS = MetadataDefaults(generation=0, version=99)

TITLE_AUTHOR_WARNING = (
    "Both title and author must be filled together, "
    "or leave both empty for in-game editing"
)


def generate_name(timestamp: Optional[int] = None) -> str:
    """Build a canvas name ``{ROOT_UUID}_{epochSeconds}``."""
    if timestamp is None:
        timestamp = int(time.time())
    return f"{ROOT_UUID}_{timestamp}"


def check_title_author(title: Optional[str], author: Optional[str]) -> Optional[str]:
    """Advisory check of the title/author pairing.

    Returns
    -------
    Optional[str]
        Warning message when exactly one of the two is non-empty after
        trimming, else None. Never raises; serialization drops both fields
        instead.
    """
    has_title = bool((title or "").strip())
    has_author = bool((author or "").strip())
    if has_title != has_author:
        return TITLE_AUTHOR_WARNING
    return None


@dataclass
class PaintCanvas:
    """In-memory painting document.

    Attributes
    ----------
    canvas_type : int
        Canvas type id (0-3), validated on construction
    title, author : str
        Display metadata; persisted only as a pair
    name : str
        Unique identifier
    pixels : List[int]
        Signed 32-bit ARGB ints, row-major, top-left origin
    generation, version : Optional[int]
        None when absent from the source document
    """

    canvas_type: int
    title: str = ""
    author: str = ""
    name: str = ""
    pixels: List[int] = field(default_factory=list)
    generation: Optional[int] = None
    version: Optional[int] = None

    def __post_init__(self) -> None:
        get_canvas_type(self.canvas_type)
        self.canvas_type = int(self.canvas_type)
        self.title = self.title or ""
        self.author = self.author or ""
        self.name = self.name or ""
        # Own the pixel list; never alias the caller's sequence
        self.pixels = [to_signed32(int(p)) for p in self.pixels]

    @property
    def info(self) -> CanvasType:
        """Canvas size class."""
        return get_canvas_type(self.canvas_type)

    @property
    def width(self) -> int:
        return self.info.width

    @property
    def height(self) -> int:
        return self.info.height

    @property
    def pixel_colors(self) -> List[str]:
        """Pixels as 6-digit RGB hex strings (alpha discarded)."""
        return [argb_to_hex(p) for p in self.pixels]

    def normalized_pixels(self) -> List[int]:
        """Pixels padded with opaque black / truncated to the canvas area."""
        return normalize_pixels(self.pixels, self.info.area)

    def update_metadata(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        name: Optional[str] = None,
        generation: Optional[int] = None,
        version: Optional[int] = None,
    ) -> "PaintCanvas":
        """Edit metadata in place before re-serialization.

        Arguments left as None keep their current value. An empty ``name``
        keeps the current name.
        """
        if title is not None:
            self.title = title
        if author is not None:
            self.author = author
        if name:
            self.name = name
        if generation is not None:
            self.generation = generation
        if version is not None:
            self.version = version
        return self

    def describe(self) -> Dict[str, Any]:
        """Human-readable summary of the document."""
        info = self.info

        def editable(value: Optional[int], sentinel: int) -> str:
            if value is None:
                return "<not set>"
            return f"{value} (in-game editable)" if value == sentinel else str(value)

        return {
            "title": self.title or "<empty - editable in-game>",
            "author": self.author or "<empty - editable in-game>",
            "canvas_type": f"{info.name} ({info.width}x{info.height})",
            "name": self.name,
            "generation": editable(self.generation, UNSET_DEFAULTS.generation),
            "version": editable(self.version, UNSET_DEFAULTS.version),
            "pixels": len(self.pixels),
        }


# ---------------------------------------------------------------------------
# Tag tree mapping
# ---------------------------------------------------------------------------


def _plain(value: Any) -> Any:
    return value.to_python() if isinstance(value, Tag) else value


def _text_field(fields: Dict[str, Any], key: str) -> str:
    value = fields.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FormatError(f"Field '{key}' must be a string, got {type(value).__name__}")
    return value


def from_tag_tree(compound: Union[Tag, Dict[str, Any]]) -> PaintCanvas:
    """Interpret a decoded compound as a PaintCanvas.

    Parameters
    ----------
    compound : Union[Tag, Dict[str, Any]]
        COMPOUND tag, or its ``to_python()`` form

    Returns
    -------
    PaintCanvas
        Document with ``generation`` / ``version`` None when absent

    Raises
    ------
    FormatError
        If the root is not a compound, or title, author, name or pixels
        have the wrong kind
    UnknownCanvasTypeError
        If ``ct`` is missing or not one of the known ids
    """
    if isinstance(compound, Tag):
        if compound.type != TagType.COMPOUND:
            raise FormatError(f"Expected COMPOUND root, got {compound.type.name}")
        fields = compound.to_python()
    else:
        fields = {k: _plain(v) for k, v in compound.items()}

    pixels = fields.get("pixels") or []
    if not isinstance(pixels, (list, tuple)):
        raise FormatError(f"Field 'pixels' must be an int array, got {type(pixels).__name__}")

    canvas = PaintCanvas(
        canvas_type=fields.get("ct"),
        title=_text_field(fields, "title"),
        author=_text_field(fields, "author"),
        name=_text_field(fields, "name"),
        pixels=pixels,
        generation=fields.get("generation"),
        version=fields.get("v"),
    )
    logger.debug(
        f"Read canvas {canvas.name!r}: type={canvas.canvas_type} pixels={len(canvas.pixels)}"
    )
    return canvas


def to_tag_tree(canvas: PaintCanvas) -> Tag:
    """Build the COMPOUND tag persisted for a canvas.

    Always emits generation, ct, pixels, v, name (in that order); emits
    author and title only when both are non-empty after trimming. Absent
    generation/version are written as UNSET_DEFAULTS.
    """
    generation = canvas.generation
    if generation is None:
        generation = UNSET_DEFAULTS.generation
    version = canvas.version
    if version is None:
        version = UNSET_DEFAULTS.version

    fields: Dict[str, Any] = {
        "generation": generation,
        "ct": canvas.canvas_type,
        "pixels": Tag(TagType.INT_ARRAY, canvas.normalized_pixels()),
        "v": version,
        "name": canvas.name,
    }
    # The mod requires both or neither
    if canvas.title.strip() and canvas.author.strip():
        fields["author"] = canvas.author
        fields["title"] = canvas.title
    return infer_tag(fields)


def parse_paint_file(data: bytes) -> PaintCanvas:
    """Decode `.paint` bytes into a PaintCanvas.

    Raises
    ------
    FormatError
        If the bytes are not a valid tag tree
    UnknownCanvasTypeError
        If the canvas type is missing or unknown
    """
    try:
        root = decode(data)
    except NBTError as e:
        raise FormatError(f"Failed to parse .paint file: {e}") from e
    return from_tag_tree(root)


def create_paint_file(canvas: PaintCanvas) -> bytes:
    """Serialize a PaintCanvas as `.paint` bytes (root COMPOUND, empty name)."""
    return encode(to_tag_tree(canvas), "")

