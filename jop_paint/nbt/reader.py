"""Tag tree decoder (bytes → Tag).

Wire layout of a named tag:
    [type u8][name length u16be][name UTF-8][payload]

Payload layouts:
    BYTE/SHORT/INT/LONG   signed big-endian, 1/2/4/8 bytes
    FLOAT/DOUBLE          IEEE-754 big-endian, 4/8 bytes
    STRING                [length u16be][UTF-8 bytes]
    BYTE_ARRAY            [count i32be][count bytes]
    INT_ARRAY/LONG_ARRAY  [count i32be][count × i32be / i64be]
    LIST                  [element type u8][count i32be][count payloads, untagged]
    COMPOUND              named tags repeated, terminated by a single END byte

LONG is read as a native 64-bit integer; values beyond 2^53 are exact.

Public API:
    decode(data) → Tag
    read_root(data) → (name, Tag)
"""

from __future__ import annotations

import logging
import struct
from typing import Callable, Dict, Tuple

from .errors import FormatError
from .tags import Tag, TagList, TagType

logger = logging.getLogger(__name__)

# Nesting guard. Each level costs two Python frames, so this stays well
# under the default recursion limit of 1000 even when called from deep stacks.
MAX_DEPTH = 256

_BYTE = struct.Struct(">b")
_UBYTE = struct.Struct(">B")
_SHORT = struct.Struct(">h")
_USHORT = struct.Struct(">H")
_INT = struct.Struct(">i")
_LONG = struct.Struct(">q")
_FLOAT = struct.Struct(">f")
_DOUBLE = struct.Struct(">d")


class _Reader:
    """Cursor over an immutable byte buffer."""

    def __init__(self, data: bytes) -> None:
        self.buf = bytes(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.buf) - self.offset

    def take(self, n: int) -> bytes:
        if n > self.remaining:
            raise FormatError(
                f"Truncated buffer: need {n} bytes, {self.remaining} left", self.offset
            )
        chunk = self.buf[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def unpack(self, st: struct.Struct):
        return st.unpack(self.take(st.size))[0]

    def read_tag_type(self) -> TagType:
        start = self.offset
        raw = self.unpack(_UBYTE)
        try:
            return TagType(raw)
        except ValueError:
            raise FormatError(f"Unknown tag type: {raw}", start) from None

    def read_count(self, element_size: int) -> int:
        start = self.offset
        count = self.unpack(_INT)
        if count < 0:
            raise FormatError(f"Negative length: {count}", start)
        if count * element_size > self.remaining:
            raise FormatError(
                f"Declared length {count} exceeds remaining {self.remaining} bytes", start
            )
        return count

    def read_string(self) -> str:
        start = self.offset
        length = self.unpack(_USHORT)
        raw = self.take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FormatError(f"Invalid UTF-8 string: {e.reason}", start) from None


# ---------------------------------------------------------------------------
# Payload readers, one per kind
# ---------------------------------------------------------------------------


def _read_byte_array(r: _Reader, depth: int) -> bytes:
    return r.take(r.read_count(1))


def _read_int_array(r: _Reader, depth: int) -> Tuple[int, ...]:
    count = r.read_count(4)
    return struct.unpack(f">{count}i", r.take(4 * count))


def _read_long_array(r: _Reader, depth: int) -> Tuple[int, ...]:
    count = r.read_count(8)
    return struct.unpack(f">{count}q", r.take(8 * count))


def _read_list(r: _Reader, depth: int) -> TagList:
    element_type = r.read_tag_type()
    start = r.offset
    # Every non-END payload occupies at least one byte
    count = r.read_count(1)
    if element_type == TagType.END and count > 0:
        raise FormatError(f"List of END tags with {count} elements", start)
    items = []
    for _ in range(count):
        items.append(Tag(element_type, _read_payload(r, element_type, depth + 1)))
    return TagList(element_type, tuple(items))


def _read_compound(r: _Reader, depth: int) -> Dict[str, Tag]:
    entries: Dict[str, Tag] = {}
    while True:
        tag_type = r.read_tag_type()
        if tag_type == TagType.END:
            return entries
        name = r.read_string()
        entries[name] = Tag(tag_type, _read_payload(r, tag_type, depth + 1))


_READERS: Dict[TagType, Callable[[_Reader, int], object]] = {
    TagType.BYTE: lambda r, d: r.unpack(_BYTE),
    TagType.SHORT: lambda r, d: r.unpack(_SHORT),
    TagType.INT: lambda r, d: r.unpack(_INT),
    TagType.LONG: lambda r, d: r.unpack(_LONG),
    TagType.FLOAT: lambda r, d: r.unpack(_FLOAT),
    TagType.DOUBLE: lambda r, d: r.unpack(_DOUBLE),
    TagType.BYTE_ARRAY: _read_byte_array,
    TagType.STRING: lambda r, d: r.read_string(),
    TagType.LIST: _read_list,
    TagType.COMPOUND: _read_compound,
    TagType.INT_ARRAY: _read_int_array,
    TagType.LONG_ARRAY: _read_long_array,
}

assert set(_READERS) == set(TagType) - {TagType.END}, "reader table must cover every payload kind"


def _read_payload(r: _Reader, tag_type: TagType, depth: int):
    if depth > MAX_DEPTH:
        raise FormatError(f"Nesting deeper than {MAX_DEPTH}", r.offset)
    if tag_type == TagType.END:
        return None
    return _READERS[tag_type](r, depth)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def read_root(data: bytes) -> Tuple[str, Tag]:
    """Decode the root named tag of a buffer.

    Parameters
    ----------
    data : bytes
        Complete tag tree (e.g. contents of a ``.paint`` file)

    Returns
    -------
    Tuple[str, Tag]
        Root name (usually empty) and root tag

    Raises
    ------
    FormatError
        If the buffer is truncated, contains an unknown tag type, declares an
        invalid length, or the root tag is END
    """
    r = _Reader(data)
    start = r.offset
    tag_type = r.read_tag_type()
    if tag_type == TagType.END:
        raise FormatError("Root tag is END", start)
    name = r.read_string()
    tag = Tag(tag_type, _read_payload(r, tag_type, 0))
    if r.remaining:
        logger.debug(f"Ignoring {r.remaining} trailing bytes after root tag")
    return name, tag


def decode(data: bytes) -> Tag:
    """Decode a buffer into its root tag (root name discarded).

    Examples
    --------
    >>> decode(bytes.fromhex("0a0000030002637400000001" "00")).to_python()
    {'ct': 1}
    """
    return read_root(data)[1]
