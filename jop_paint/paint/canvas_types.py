"""Canvas size classes of the Joy of Painting mod.

The table is fixed by the mod and never mutated:

    id  name   width × height
    0   Small  16 × 16
    1   Large  32 × 32
    2   Long   32 × 16
    3   Tall   16 × 32

Any other id is an error; there is no fallback size.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping


class PaintError(Exception):
    """Base class for painting document errors."""

    pass


class UnknownCanvasTypeError(PaintError, ValueError):
    """Raised when a canvas-type id is not one of the known ids."""

    def __init__(self, canvas_type: Any) -> None:
        super().__init__(f"Unknown canvas type: {canvas_type}")
        self.canvas_type = canvas_type


@dataclass(frozen=True)
class CanvasType:
    """One canvas size class."""

    id: int
    name: str
    width: int
    height: int

    @property
    def area(self) -> int:
        """Number of pixels on the canvas."""
        return self.width * self.height

    @property
    def size(self) -> tuple:
        """(width, height) in pixels."""
        return (self.width, self.height)


CANVAS_TYPES: Mapping[int, CanvasType] = MappingProxyType({
    0: CanvasType(0, "Small", 16, 16),
    1: CanvasType(1, "Large", 32, 32),
    2: CanvasType(2, "Long", 32, 16),
    3: CanvasType(3, "Tall", 16, 32),
})


def get_canvas_type(canvas_type: Any) -> CanvasType:
    """Look up a canvas type by id.

    Parameters
    ----------
    canvas_type : Any
        Canvas type id (int 0-3) or a CanvasType

    Returns
    -------
    CanvasType
        Table entry

    Raises
    ------
    UnknownCanvasTypeError
        For any id outside the table (including None and non-integers)
    """
    if isinstance(canvas_type, CanvasType):
        canvas_type = canvas_type.id
    if isinstance(canvas_type, bool) or not isinstance(canvas_type, numbers.Integral):
        raise UnknownCanvasTypeError(canvas_type)
    try:
        return CANVAS_TYPES[int(canvas_type)]
    except KeyError:
        raise UnknownCanvasTypeError(canvas_type) from None
