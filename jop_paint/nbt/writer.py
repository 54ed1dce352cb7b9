"""Tag tree encoder (Tag → bytes) and value-driven tag inference.

Two entry points:
    encode(tag, name="")            explicit Tag tree, exact inverse of decode()
    encode_inferred(value, name="") untyped Python value, kinds picked by
                                    infer_tag_type()

Narrowing policy (wire compatibility with the consuming mod, never widen):
    integral number      → BYTE (-128..127), SHORT (-32768..32767),
                           INT (32-bit signed), else LONG
    non-integral number  → DOUBLE
    text                 → STRING
    sequence of integers → INT_ARRAY (homogeneous, non-empty)
    other sequence       → LIST
    mapping              → COMPOUND

A float holding an integral value (2.0) is integral: the consuming tool has a
single number type and narrows on the value, not on the representation.
"""

from __future__ import annotations

import math
import struct
from typing import Any, Callable, Dict, List, Mapping, Sequence

from .errors import EncodeError
from .tags import INT_RANGES, MAX_STRING_BYTES, Tag, TagList, TagType

_NUMERIC_ORDER = [
    TagType.BYTE,
    TagType.SHORT,
    TagType.INT,
    TagType.LONG,
    TagType.FLOAT,
    TagType.DOUBLE,
]


# ---------------------------------------------------------------------------
# Inference
# ---------------------------------------------------------------------------


def _is_integral(value: Any) -> bool:
    # bool is an int subclass; callers handle it first
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def narrowest_int_type(value: int) -> TagType:
    """Return the narrowest integral kind whose signed range holds ``value``."""
    for tag_type in (TagType.BYTE, TagType.SHORT, TagType.INT, TagType.LONG):
        lo, hi = INT_RANGES[tag_type]
        if lo <= value <= hi:
            return tag_type
    raise EncodeError(f"Integer {value} does not fit in 64 bits")


def infer_tag_type(value: Any) -> TagType:
    """Pick the tag kind for an untyped value.

    Parameters
    ----------
    value : Any
        bool, int, float, str, bytes, sequence, mapping or Tag

    Returns
    -------
    TagType
        Kind the value is written as

    Raises
    ------
    EncodeError
        For None, integers beyond 64 bits and unsupported types

    Examples
    --------
    >>> infer_tag_type(127), infer_tag_type(128), infer_tag_type(2**31)
    (<TagType.BYTE: 1>, <TagType.SHORT: 2>, <TagType.LONG: 4>)
    >>> infer_tag_type([1, 2, 3]), infer_tag_type(["a"]), infer_tag_type([1, 2**40])
    (<TagType.INT_ARRAY: 11>, <TagType.LIST: 9>, <TagType.LIST: 9>)

    Integer sequences become INT_ARRAY only when every element fits in 32
    bits; otherwise they are written as a LIST of the widest integer kind.
    """
    if isinstance(value, Tag):
        return value.type
    if isinstance(value, bool):
        return TagType.BYTE
    if isinstance(value, (int, float)):
        if _is_integral(value):
            return narrowest_int_type(int(value))
        return TagType.DOUBLE
    if isinstance(value, str):
        return TagType.STRING
    if isinstance(value, (bytes, bytearray)):
        return TagType.BYTE_ARRAY
    if isinstance(value, Mapping):
        return TagType.COMPOUND
    if isinstance(value, Sequence):
        lo, hi = INT_RANGES[TagType.INT]
        if value and all(
            not isinstance(v, bool) and isinstance(v, (int, float)) and _is_integral(v)
            and lo <= v <= hi
            for v in value
        ):
            return TagType.INT_ARRAY
        return TagType.LIST
    if value is None:
        raise EncodeError("Cannot infer a tag type for None")
    raise EncodeError(f"Cannot infer a tag type for {type(value).__name__}")


def _list_element_type(items: Sequence[Any]) -> TagType:
    """Common element kind of a LIST; mixed numbers widen to the widest."""
    kinds = {infer_tag_type(item) for item in items}
    if not kinds:
        return TagType.END
    if len(kinds) == 1:
        return kinds.pop()
    if kinds <= set(_NUMERIC_ORDER):
        return max(kinds, key=_NUMERIC_ORDER.index)
    names = ", ".join(sorted(k.name for k in kinds))
    raise EncodeError(f"List elements have mixed kinds: {names}")


def _coerce(value: Any, tag_type: TagType) -> Tag:
    """Build a Tag of ``tag_type`` from an untyped value."""
    if isinstance(value, Tag):
        if value.type != tag_type:
            raise EncodeError(f"Expected {tag_type.name} element, got {value.type.name}")
        return value
    if tag_type in INT_RANGES:
        return Tag(tag_type, int(value))
    if tag_type in (TagType.FLOAT, TagType.DOUBLE):
        return Tag(tag_type, float(value))
    return infer_tag(value)


def infer_tag(value: Any) -> Tag:
    """Convert an untyped value tree into a typed Tag tree.

    Tag instances inside the tree are kept as-is, so callers can pin a kind
    for individual fields.
    """
    if isinstance(value, Tag):
        return value
    tag_type = infer_tag_type(value)
    if tag_type in INT_RANGES:
        return Tag(tag_type, int(value))
    if tag_type == TagType.DOUBLE:
        return Tag(tag_type, float(value))
    if tag_type in (TagType.STRING, TagType.BYTE_ARRAY):
        return Tag(tag_type, value)
    if tag_type == TagType.INT_ARRAY:
        return Tag(tag_type, [int(v) for v in value])
    if tag_type == TagType.COMPOUND:
        entries: Dict[str, Tag] = {}
        for key, child in value.items():
            if not isinstance(key, str):
                raise EncodeError(f"Compound key must be str, got {type(key).__name__}")
            entries[key] = infer_tag(child)
        return Tag.compound(entries)
    element_type = _list_element_type(value)
    return Tag.list_of(element_type, [_coerce(item, element_type) for item in value])


# ---------------------------------------------------------------------------
# Explicit encoding
# ---------------------------------------------------------------------------


def _pack_int(fmt: str, tag_type: TagType) -> Callable[[List[bytes], Any], None]:
    lo, hi = INT_RANGES[tag_type]

    def write(out: List[bytes], value: Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(f"{tag_type.name} payload must be int, got {type(value).__name__}")
        if not lo <= value <= hi:
            raise EncodeError(f"{tag_type.name} value {value} out of range [{lo}, {hi}]")
        out.append(struct.pack(fmt, value))

    return write


def _pack_float(fmt: str) -> Callable[[List[bytes], Any], None]:
    def write(out: List[bytes], value: Any) -> None:
        try:
            out.append(struct.pack(fmt, value))
        except (struct.error, OverflowError) as e:
            raise EncodeError(f"Cannot pack float {value!r}: {e}") from e

    return write


def _write_string(out: List[bytes], value: str) -> None:
    if not isinstance(value, str):
        raise EncodeError(f"STRING payload must be str, got {type(value).__name__}")
    raw = value.encode("utf-8")
    if len(raw) > MAX_STRING_BYTES:
        raise EncodeError(f"String of {len(raw)} UTF-8 bytes exceeds {MAX_STRING_BYTES}")
    out.append(struct.pack(">H", len(raw)))
    out.append(raw)


def _write_count(out: List[bytes], count: int) -> None:
    if count > INT_RANGES[TagType.INT][1]:
        raise EncodeError(f"Sequence of {count} elements is too long")
    out.append(struct.pack(">i", count))


def _write_byte_array(out: List[bytes], value: bytes) -> None:
    _write_count(out, len(value))
    out.append(bytes(value))


def _write_int_array(out: List[bytes], value: Sequence[int]) -> None:
    _write_count(out, len(value))
    try:
        out.append(struct.pack(f">{len(value)}i", *value))
    except struct.error as e:
        raise EncodeError(f"INT_ARRAY element out of range: {e}") from e


def _write_long_array(out: List[bytes], value: Sequence[int]) -> None:
    _write_count(out, len(value))
    try:
        out.append(struct.pack(f">{len(value)}q", *value))
    except struct.error as e:
        raise EncodeError(f"LONG_ARRAY element out of range: {e}") from e


def _write_list(out: List[bytes], value: TagList) -> None:
    if not isinstance(value, TagList):
        raise EncodeError(f"LIST payload must be TagList, got {type(value).__name__}")
    if value.element_type == TagType.END and value.items:
        raise EncodeError("Non-empty list cannot have END elements")
    out.append(bytes([value.element_type]))
    _write_count(out, len(value.items))
    for item in value.items:
        if item.type != value.element_type:
            raise EncodeError(
                f"List of {value.element_type.name} contains a {item.type.name} element"
            )
        _write_payload(out, item)


def _write_compound(out: List[bytes], value: Mapping[str, Tag]) -> None:
    for name, child in value.items():
        _write_named(out, name, child)
    out.append(bytes([TagType.END]))


_WRITERS: Dict[TagType, Callable[[List[bytes], Any], None]] = {
    TagType.BYTE: _pack_int(">b", TagType.BYTE),
    TagType.SHORT: _pack_int(">h", TagType.SHORT),
    TagType.INT: _pack_int(">i", TagType.INT),
    TagType.LONG: _pack_int(">q", TagType.LONG),
    TagType.FLOAT: _pack_float(">f"),
    TagType.DOUBLE: _pack_float(">d"),
    TagType.BYTE_ARRAY: _write_byte_array,
    TagType.STRING: _write_string,
    TagType.LIST: _write_list,
    TagType.COMPOUND: _write_compound,
    TagType.INT_ARRAY: _write_int_array,
    TagType.LONG_ARRAY: _write_long_array,
}

assert set(_WRITERS) == set(TagType) - {TagType.END}, "writer table must cover every payload kind"


def _write_payload(out: List[bytes], tag: Tag) -> None:
    if tag.type == TagType.END:
        raise EncodeError("END tag has no payload")
    _WRITERS[tag.type](out, tag.value)


def _write_named(out: List[bytes], name: str, tag: Tag) -> None:
    if not isinstance(tag, Tag):
        raise EncodeError(f"Compound entry {name!r} is not a Tag")
    if tag.type == TagType.END:
        raise EncodeError(f"Compound entry {name!r} cannot be END")
    out.append(bytes([tag.type]))
    _write_string(out, name)
    _write_payload(out, tag)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def encode(tag: Tag, name: str = "") -> bytes:
    """Serialize an explicit Tag tree as a named root tag.

    Parameters
    ----------
    tag : Tag
        Root tag (normally COMPOUND)
    name : str
        Root name, default "" (what .paint files use)

    Returns
    -------
    bytes
        Wire bytes

    Raises
    ------
    EncodeError
        If a payload does not fit its declared kind
    """
    out: List[bytes] = []
    _write_named(out, name, tag)
    return b"".join(out)


def encode_inferred(value: Any, name: str = "") -> bytes:
    """Serialize an untyped value, choosing kinds with infer_tag_type()."""
    return encode(infer_tag(value), name)
