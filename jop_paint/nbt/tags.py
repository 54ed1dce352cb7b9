"""Tag tree data model.

A tag tree is a closed tagged union over thirteen kinds (End plus twelve
payload kinds). Every node is an immutable ``Tag(type, value)``:

    END         None            (compound terminator / empty list kind only)
    BYTE        int             signed 8-bit
    SHORT       int             signed 16-bit
    INT         int             signed 32-bit
    LONG        int             signed 64-bit
    FLOAT       float           IEEE-754 binary32
    DOUBLE      float           IEEE-754 binary64
    BYTE_ARRAY  bytes
    STRING      str             UTF-8 on the wire, u16 byte-length prefix
    LIST        TagList         one element kind, items are Tags of that kind
    COMPOUND    dict[str, Tag]  insertion order kept, not significant
    INT_ARRAY   tuple[int, ...] signed 32-bit elements
    LONG_ARRAY  tuple[int, ...] signed 64-bit elements

Usage:
    from jop_paint.nbt import Tag, TagType
    root = Tag.compound({"ct": Tag(TagType.INT, 1)})
    root.to_python()  # {'ct': 1}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterable, Mapping, Tuple


class TagType(IntEnum):
    """Wire id of each tag kind."""

    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10
    INT_ARRAY = 11
    LONG_ARRAY = 12


# Signed ranges of the integral kinds (inclusive).
INT_RANGES: Dict[TagType, Tuple[int, int]] = {
    TagType.BYTE: (-(2**7), 2**7 - 1),
    TagType.SHORT: (-(2**15), 2**15 - 1),
    TagType.INT: (-(2**31), 2**31 - 1),
    TagType.LONG: (-(2**63), 2**63 - 1),
}

MAX_STRING_BYTES = 0xFFFF


@dataclass(frozen=True)
class TagList:
    """Payload of a LIST tag: homogeneous sequence of one element kind."""

    element_type: TagType
    items: Tuple["Tag", ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "element_type", TagType(self.element_type))
        object.__setattr__(self, "items", tuple(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class Tag:
    """One node of a tag tree."""

    type: TagType
    value: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", TagType(self.type))
        # Arrays are stored as tuples so equal trees compare equal
        if self.type in (TagType.INT_ARRAY, TagType.LONG_ARRAY):
            object.__setattr__(self, "value", tuple(self.value))
        elif self.type == TagType.BYTE_ARRAY:
            object.__setattr__(self, "value", bytes(self.value))

    @classmethod
    def compound(cls, entries: Mapping[str, "Tag"]) -> "Tag":
        """Build a COMPOUND tag from a name → Tag mapping."""
        return cls(TagType.COMPOUND, dict(entries))

    @classmethod
    def list_of(cls, element_type: TagType, items: Iterable["Tag"]) -> "Tag":
        """Build a LIST tag of ``element_type`` elements."""
        return cls(TagType.LIST, TagList(element_type, tuple(items)))

    def __getitem__(self, key: str) -> "Tag":
        if self.type != TagType.COMPOUND:
            raise TypeError(f"{self.type.name} tag is not subscriptable")
        return self.value[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Compound lookup returning ``default`` when the key is missing."""
        if self.type != TagType.COMPOUND:
            raise TypeError(f"{self.type.name} tag has no entries")
        return self.value.get(key, default)

    def to_python(self) -> Any:
        """Unwrap this tree into plain Python values.

        Returns
        -------
        Any
            dict for COMPOUND, list for LIST / INT_ARRAY / LONG_ARRAY,
            bytes for BYTE_ARRAY, otherwise the scalar payload.
        """
        if self.type == TagType.COMPOUND:
            return {name: child.to_python() for name, child in self.value.items()}
        if self.type == TagType.LIST:
            return [item.to_python() for item in self.value.items]
        if self.type in (TagType.INT_ARRAY, TagType.LONG_ARRAY):
            return list(self.value)
        return self.value
