"""Tests for the binary tag codec.

Verifies:
    - decode(encode(t)) reproduces explicit trees of every payload kind
    - Big-endian wire layout of scalars, strings, lists and compounds
    - Value-driven narrowing thresholds of infer_tag_type / encode_inferred
    - LONG values beyond 2^53 are exact
    - Malformed input (truncated, unknown kind, negative length, bad UTF-8,
      END root, nesting past MAX_DEPTH) raises FormatError with the byte offset
    - Integer sequences wider than 32 bits infer as a LIST of LONG
    - Unencodable values (None, out-of-range ints, mixed lists) raise EncodeError

Run: pytest tests/test_nbt_codec.py -v
"""
import struct

import pytest

from jop_paint.nbt import (
    EncodeError,
    FormatError,
    NBTError,
    Tag,
    TagList,
    TagType,
    decode,
    encode,
    encode_inferred,
    infer_tag,
    infer_tag_type,
    narrowest_int_type,
    read_root,
)
from jop_paint.nbt.reader import MAX_DEPTH

# Compound, empty name, Int "ct"=1, End, End
CT_ONE = bytes.fromhex("0A 0000 03 0002 6374 00000001 00 00")


def _all_kinds_tree() -> Tag:
    return Tag.compound({
        "b": Tag(TagType.BYTE, -128),
        "s": Tag(TagType.SHORT, 32767),
        "i": Tag(TagType.INT, -(2**31)),
        "l": Tag(TagType.LONG, 2**63 - 1),
        "f": Tag(TagType.FLOAT, 1.5),
        "d": Tag(TagType.DOUBLE, 0.1),
        "ba": Tag(TagType.BYTE_ARRAY, b"\x00\x7f\xff"),
        "str": Tag(TagType.STRING, "héllo ✓"),
        "list": Tag.list_of(TagType.STRING, [Tag(TagType.STRING, "a"), Tag(TagType.STRING, "b")]),
        "empty": Tag.list_of(TagType.END, []),
        "nested": Tag.compound({"inner": Tag(TagType.INT, 7)}),
        "ia": Tag(TagType.INT_ARRAY, [-1, 0, 2**31 - 1]),
        "la": Tag(TagType.LONG_ARRAY, [-(2**63), 2**53 + 1]),
    })


# ============================================================================
# ROUND TRIP
# ============================================================================

class TestRoundTrip:
    """decode() is the exact inverse of encode()."""

    def test_all_kinds(self):
        tree = _all_kinds_tree()
        assert decode(encode(tree)) == tree

    def test_root_name_preserved(self):
        name, tag = read_root(encode(Tag.compound({}), "root"))
        assert name == "root"
        assert tag == Tag.compound({})

    def test_list_of_compounds(self):
        tree = Tag.compound({
            "items": Tag.list_of(TagType.COMPOUND, [
                Tag.compound({"x": Tag(TagType.BYTE, 1)}),
                Tag.compound({"x": Tag(TagType.BYTE, 2)}),
            ])
        })
        assert decode(encode(tree)).to_python() == {"items": [{"x": 1}, {"x": 2}]}

    def test_long_beyond_double_precision(self):
        """2^53 + 1 is not representable as a double; LONG keeps it exact."""
        value = 2**53 + 1
        tree = Tag.compound({"big": Tag(TagType.LONG, value)})
        assert decode(encode(tree))["big"].value == value

    def test_negative_long(self):
        value = -(2**62) - 3
        assert decode(encode_inferred({"n": value}))["n"].value == value


# ============================================================================
# WIRE LAYOUT
# ============================================================================

class TestWireLayout:
    """Byte-exact encoding."""

    def test_ct_fixture_decodes(self):
        root = decode(CT_ONE)
        assert root.type == TagType.COMPOUND
        assert root.to_python() == {"ct": 1}
        assert root["ct"].type == TagType.INT

    def test_compound_with_int_field(self):
        tree = Tag.compound({"ct": Tag(TagType.INT, 1)})
        assert encode(tree) == CT_ONE[:-1]

    def test_big_endian_scalars(self):
        data = encode(Tag(TagType.SHORT, 0x1234), "")
        assert data == b"\x02\x00\x00\x12\x34"

    def test_string_has_u16_length_prefix(self):
        data = encode(Tag(TagType.STRING, "ab"), "n")
        assert data == b"\x08\x00\x01n\x00\x02ab"

    def test_list_header(self):
        tag = Tag.list_of(TagType.BYTE, [Tag(TagType.BYTE, 1), Tag(TagType.BYTE, 2)])
        assert encode(tag, "") == b"\x09\x00\x00\x01\x00\x00\x00\x02\x01\x02"

    def test_empty_list_is_end_kind(self):
        assert encode_inferred({"l": []}) == bytes.fromhex("0A 0000 09 0001 6C 00 00000000 00")

    def test_trailing_bytes_ignored(self):
        assert decode(CT_ONE + b"\xde\xad").to_python() == {"ct": 1}


# ============================================================================
# INFERENCE
# ============================================================================

class TestInference:
    """Value-driven narrowing (compatibility-critical thresholds)."""

    @pytest.mark.parametrize("value,expected", [
        (0, TagType.BYTE),
        (127, TagType.BYTE),
        (-128, TagType.BYTE),
        (128, TagType.SHORT),
        (-129, TagType.SHORT),
        (32767, TagType.SHORT),
        (32768, TagType.INT),
        (-(2**31), TagType.INT),
        (2**31, TagType.LONG),
        (-(2**31) - 1, TagType.LONG),
        (1.5, TagType.DOUBLE),
        (2.0, TagType.BYTE),
        (True, TagType.BYTE),
        ("a", TagType.STRING),
        (b"\x01", TagType.BYTE_ARRAY),
        ([1, 2], TagType.INT_ARRAY),
        ([1, 2**31], TagType.LIST),
        ([-(2**40)], TagType.LIST),
        (["a"], TagType.LIST),
        ([1, 2.5], TagType.LIST),
        ([], TagType.LIST),
        ({"k": 1}, TagType.COMPOUND),
    ])
    def test_infer_tag_type(self, value, expected):
        assert infer_tag_type(value) == expected

    def test_narrowest_int_type_too_large(self):
        with pytest.raises(EncodeError):
            narrowest_int_type(2**63)

    def test_none_rejected(self):
        with pytest.raises(EncodeError):
            infer_tag_type(None)
        with pytest.raises(EncodeError):
            encode_inferred({"x": None})

    def test_unsupported_type_rejected(self):
        with pytest.raises(EncodeError, match="object"):
            infer_tag_type(object())

    def test_mixed_numeric_list_widens(self):
        tag = infer_tag([1, 2.5, 300])
        assert tag.type == TagType.LIST
        assert tag.value.element_type == TagType.DOUBLE
        assert [t.value for t in tag.value] == [1.0, 2.5, 300.0]

    def test_wide_integers_become_long_list(self):
        tag = decode(encode_inferred({"x": [2**40, 1]}))
        assert tag["x"].type == TagType.LIST
        assert tag["x"].value.element_type == TagType.LONG
        assert tag.to_python() == {"x": [2**40, 1]}

    def test_mixed_kind_list_rejected(self):
        with pytest.raises(EncodeError, match="mixed"):
            infer_tag(["a", 1])

    def test_list_of_lists(self):
        tag = infer_tag([["a"], ["b", "c"]])
        assert tag.value.element_type == TagType.LIST
        assert tag.to_python() == [["a"], ["b", "c"]]

    def test_explicit_tags_pinned(self):
        tag = infer_tag({"p": Tag(TagType.INT_ARRAY, [1]), "n": 1})
        assert tag["p"].type == TagType.INT_ARRAY
        assert tag["n"].type == TagType.BYTE

    def test_non_string_key_rejected(self):
        with pytest.raises(EncodeError):
            infer_tag({1: "x"})

    def test_encode_inferred_narrowing_on_wire(self):
        data = encode_inferred({"v": 99})
        assert data == bytes.fromhex("0A 0000 01 0001 76 63 00")


# ============================================================================
# MALFORMED INPUT
# ============================================================================

class TestMalformedInput:
    """Decoding aborts with FormatError on the first violation."""

    def test_empty_buffer(self):
        with pytest.raises(FormatError, match="Truncated"):
            decode(b"")

    def test_truncated_payload(self):
        with pytest.raises(FormatError) as exc_info:
            decode(CT_ONE[:10])
        assert exc_info.value.offset >= 0

    def test_missing_compound_end(self):
        with pytest.raises(FormatError):
            decode(CT_ONE[:-2])

    def test_unknown_tag_type(self):
        with pytest.raises(FormatError, match="Unknown tag type: 13"):
            decode(b"\x0d\x00\x00")

    def test_unknown_tag_type_offset(self):
        with pytest.raises(FormatError, match=r"at byte 3"):
            decode(b"\x0a\x00\x00\x42")

    def test_end_root_rejected(self):
        with pytest.raises(FormatError, match="END"):
            decode(b"\x00")

    def test_negative_array_length(self):
        data = b"\x0b\x00\x00" + struct.pack(">i", -1)
        with pytest.raises(FormatError, match="Negative"):
            decode(data)

    def test_oversized_array_length(self):
        data = b"\x0b\x00\x00" + struct.pack(">i", 1000) + b"\x00" * 8
        with pytest.raises(FormatError, match="exceeds"):
            decode(data)

    def test_invalid_utf8(self):
        data = b"\x08\x00\x00\x00\x02\xff\xfe"
        with pytest.raises(FormatError, match="UTF-8"):
            decode(data)

    def test_non_empty_end_list(self):
        data = b"\x09\x00\x00\x00" + struct.pack(">i", 1)
        with pytest.raises(FormatError):
            decode(data)

    @staticmethod
    def _nested_lists(levels: int) -> bytes:
        wrapper = b"\x09" + struct.pack(">i", 1)
        return b"\x09\x00\x00" + wrapper * levels + b"\x00" + struct.pack(">i", 0)

    @staticmethod
    def _nested_compounds(levels: int) -> bytes:
        return b"\x0a\x00\x00" * (levels + 1) + b"\x00" * (levels + 1)

    @pytest.mark.parametrize("build", ["_nested_lists", "_nested_compounds"])
    def test_nesting_at_limit_decodes(self, build):
        decode(getattr(self, build)(MAX_DEPTH))

    @pytest.mark.parametrize("build", ["_nested_lists", "_nested_compounds"])
    def test_nesting_past_limit_rejected(self, build):
        with pytest.raises(FormatError, match="Nesting deeper than"):
            decode(getattr(self, build)(MAX_DEPTH + 1))

    def test_very_deep_nesting_rejected(self):
        with pytest.raises(FormatError, match="Nesting deeper than"):
            decode(self._nested_lists(5000))

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode(b"\xff")
        assert issubclass(FormatError, NBTError)


# ============================================================================
# EXPLICIT ENCODING ERRORS
# ============================================================================

class TestEncodeErrors:
    """encode() checks payloads against their declared kind."""

    def test_byte_out_of_range(self):
        with pytest.raises(EncodeError, match="out of range"):
            encode(Tag.compound({"b": Tag(TagType.BYTE, 128)}))

    def test_int_array_element_out_of_range(self):
        with pytest.raises(EncodeError):
            encode(Tag(TagType.INT_ARRAY, [2**31]))

    def test_string_too_long(self):
        with pytest.raises(EncodeError, match="exceeds"):
            encode(Tag(TagType.STRING, "x" * 0x10000))

    def test_list_element_kind_mismatch(self):
        bad = Tag(TagType.LIST, TagList(TagType.BYTE, (Tag(TagType.SHORT, 1),)))
        with pytest.raises(EncodeError, match="contains"):
            encode(bad)

    def test_end_root_rejected(self):
        with pytest.raises(EncodeError):
            encode(Tag(TagType.END))

    def test_bool_payload_rejected(self):
        with pytest.raises(EncodeError):
            encode(Tag(TagType.INT, True))
