"""Tests for the painting document model.

Verifies:
    - CANVAS_TYPES table (ids, sizes, immutability) and get_canvas_type errors
    - ARGB pixel packing (signed 32-bit, alpha discarded on decode)
    - from_tag_tree / to_tag_tree field mapping and defaults
    - author/title written as a pair or not at all
    - parse_paint_file wraps codec errors; create_paint_file round trip
    - PaintCanvas metadata editing and describe()

Run: pytest tests/test_paint_document.py -v
"""
import pytest

from jop_paint.nbt import FormatError, Tag, TagType, decode, encode_inferred
from jop_paint.paint import (
    CANVAS_TYPES,
    FRESH_DEFAULTS,
    ROOT_UUID,
    UNSET_DEFAULTS,
    PaintCanvas,
    PaintError,
    UnknownCanvasTypeError,
    argb_to_hex,
    check_title_author,
    create_paint_file,
    from_tag_tree,
    generate_name,
    get_canvas_type,
    hex_to_rgb,
    pack_rgb,
    parse_paint_file,
    to_tag_tree,
)
from jop_paint.paint.pixels import (
    OPAQUE_BLACK,
    normalize_pixels,
    pixels_to_rgb_array,
    rgb_array_to_pixels,
    to_signed32,
    to_unsigned32,
)

CT_ONE = bytes.fromhex("0A 0000 03 0002 6374 00000001 00 00")


def _canvas(**kwargs) -> PaintCanvas:
    fields = dict(canvas_type=0, name="n", pixels=[pack_rgb(1, 2, 3)] * 256)
    fields.update(kwargs)
    return PaintCanvas(**fields)


# ============================================================================
# CANVAS TYPES
# ============================================================================

class TestCanvasTypes:
    """Fixed size table."""

    @pytest.mark.parametrize("ct,name,size", [
        (0, "Small", (16, 16)),
        (1, "Large", (32, 32)),
        (2, "Long", (32, 16)),
        (3, "Tall", (16, 32)),
    ])
    def test_table(self, ct, name, size):
        info = get_canvas_type(ct)
        assert info.name == name
        assert info.size == size
        assert info.area == size[0] * size[1]

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            CANVAS_TYPES[4] = CANVAS_TYPES[0]

    @pytest.mark.parametrize("bad", [4, -1, None, "1", 1.0, True])
    def test_unknown_ids_rejected(self, bad):
        with pytest.raises(UnknownCanvasTypeError) as exc_info:
            get_canvas_type(bad)
        assert exc_info.value.canvas_type == bad

    def test_error_hierarchy(self):
        assert issubclass(UnknownCanvasTypeError, PaintError)
        assert issubclass(UnknownCanvasTypeError, ValueError)


# ============================================================================
# PIXELS
# ============================================================================

class TestPixels:
    """Signed ARGB packing."""

    def test_pack_rgb_signed(self):
        value = pack_rgb(0x12, 0x34, 0x56)
        assert value == 0xFF123456 - 2**32
        assert value < 0

    def test_argb_to_hex_drops_alpha(self):
        assert argb_to_hex(pack_rgb(0x12, 0x34, 0x56)) == "123456"
        assert argb_to_hex(0x00ABCDEF) == "abcdef"

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#123456") == (0x12, 0x34, 0x56)
        with pytest.raises(ValueError):
            hex_to_rgb("12345")

    def test_pack_rgb_range(self):
        with pytest.raises(ValueError, match="g=256"):
            pack_rgb(0, 256, 0)

    def test_signed_unsigned_reinterpretation(self):
        assert to_unsigned32(-1) == 0xFFFFFFFF
        assert to_signed32(0xFFFFFFFF) == -1
        assert to_signed32(0x7FFFFFFF) == 0x7FFFFFFF
        assert OPAQUE_BLACK == to_signed32(0xFF000000)

    def test_normalize_pads_and_truncates(self):
        assert normalize_pixels([1, 2], 4) == [1, 2, OPAQUE_BLACK, OPAQUE_BLACK]
        assert normalize_pixels([1, 2, 3], 2) == [1, 2]

    def test_array_round_trip(self):
        pixels = [pack_rgb(i, 255 - i, i // 2) for i in range(256)]
        rgb = pixels_to_rgb_array(pixels, 16, 16)
        assert rgb.shape == (16, 16, 3)
        assert tuple(rgb[0, 1]) == (1, 254, 0)
        assert rgb_array_to_pixels(rgb) == pixels

    def test_array_ignores_source_alpha(self):
        rgb = pixels_to_rgb_array([0x00FF0000], 1, 1)
        assert rgb_array_to_pixels(rgb) == [pack_rgb(255, 0, 0)]


# ============================================================================
# TAG TREE MAPPING
# ============================================================================

class TestFromTagTree:
    """Tag tree → PaintCanvas."""

    def test_minimal_fixture(self):
        canvas = parse_paint_file(CT_ONE)
        assert canvas.canvas_type == 1
        assert (canvas.width, canvas.height) == (32, 32)
        assert canvas.title == ""
        assert canvas.author == ""
        assert canvas.pixels == []
        assert canvas.generation is None
        assert canvas.version is None

    def test_all_fields(self):
        tree = encode_inferred({
            "generation": 3, "ct": 2, "pixels": [pack_rgb(9, 9, 9)] * 512,
            "v": 4, "name": "abc", "author": "Bob", "title": "Hill",
        })
        canvas = parse_paint_file(tree)
        assert canvas.canvas_type == 2
        assert (canvas.title, canvas.author, canvas.name) == ("Hill", "Bob", "abc")
        assert (canvas.generation, canvas.version) == (3, 4)
        assert canvas.pixel_colors[0] == "090909"

    def test_plain_dict_accepted(self):
        canvas = from_tag_tree({"ct": Tag(TagType.BYTE, 0), "name": "x"})
        assert canvas.canvas_type == 0
        assert canvas.name == "x"

    def test_missing_canvas_type(self):
        with pytest.raises(UnknownCanvasTypeError):
            from_tag_tree({"name": "x"})

    def test_unknown_canvas_type(self):
        with pytest.raises(UnknownCanvasTypeError):
            parse_paint_file(encode_inferred({"ct": 7}))

    def test_non_compound_root(self):
        with pytest.raises(FormatError, match="COMPOUND"):
            from_tag_tree(Tag(TagType.INT, 1))

    @pytest.mark.parametrize("field", ["title", "author", "name"])
    def test_non_string_text_field_rejected(self, field):
        data = encode_inferred({"ct": 0, field: 5})
        with pytest.raises(FormatError, match=f"'{field}' must be a string"):
            parse_paint_file(data)

    def test_deep_nesting_is_format_error(self):
        with pytest.raises(FormatError, match="Nesting deeper than"):
            parse_paint_file(b"\x0a\x00\x00" * 2000 + b"\x00" * 2000)

    def test_codec_errors_wrapped(self):
        with pytest.raises(FormatError, match="Failed to parse .paint file"):
            parse_paint_file(b"\x0a\x00")


class TestToTagTree:
    """PaintCanvas → tag tree."""

    def test_field_order_and_kinds(self):
        tag = to_tag_tree(_canvas(generation=1, version=2))
        assert list(tag.value) == ["generation", "ct", "pixels", "v", "name"]
        assert tag["ct"].type == TagType.BYTE
        assert tag["pixels"].type == TagType.INT_ARRAY
        assert len(tag["pixels"].value) == 256

    def test_unset_defaults_for_missing_metadata(self):
        tag = to_tag_tree(_canvas())
        assert tag["generation"].value == UNSET_DEFAULTS.generation
        assert tag["v"].value == UNSET_DEFAULTS.version

    @pytest.mark.parametrize("title,author,expect_pair", [
        ("T", "A", True),
        ("T", "", False),
        ("", "A", False),
        ("   ", "A", False),
        ("", "", False),
    ])
    def test_author_title_pairing(self, title, author, expect_pair):
        keys = set(to_tag_tree(_canvas(title=title, author=author)).value)
        assert ("title" in keys) == expect_pair
        assert ("author" in keys) == expect_pair

    def test_pixels_normalized_to_area(self):
        short = to_tag_tree(_canvas(pixels=[pack_rgb(1, 1, 1)]))
        assert len(short["pixels"].value) == 256
        assert short["pixels"].value[-1] == OPAQUE_BLACK

        long = to_tag_tree(_canvas(pixels=[0] * 300))
        assert len(long["pixels"].value) == 256

    def test_file_round_trip(self):
        canvas = _canvas(title="T", author="A", generation=FRESH_DEFAULTS.generation,
                         version=FRESH_DEFAULTS.version)
        back = parse_paint_file(create_paint_file(canvas))
        assert back == canvas

    def test_file_root_is_unnamed_compound(self):
        data = create_paint_file(_canvas())
        assert data[:3] == b"\x0a\x00\x00"
        assert decode(data).type == TagType.COMPOUND


# ============================================================================
# CANVAS MODEL
# ============================================================================

class TestPaintCanvas:
    """Construction, editing and summaries."""

    def test_pixels_are_copied(self):
        source = [1, 2, 3]
        canvas = _canvas(pixels=source)
        source.append(4)
        assert canvas.pixels == [1, 2, 3]

    def test_unsigned_pixels_stored_signed(self):
        assert _canvas(pixels=[0xFF000000]).pixels == [OPAQUE_BLACK]

    def test_none_metadata_becomes_empty(self):
        canvas = PaintCanvas(canvas_type=0, title=None, author=None, name=None)
        assert (canvas.title, canvas.author, canvas.name) == ("", "", "")

    def test_invalid_type_on_construction(self):
        with pytest.raises(UnknownCanvasTypeError):
            PaintCanvas(canvas_type=9)

    def test_update_metadata(self):
        canvas = _canvas(name="keep")
        canvas.update_metadata(title="New", author="Me", name="", generation=5)
        assert (canvas.title, canvas.author, canvas.name) == ("New", "Me", "keep")
        assert canvas.generation == 5
        assert canvas.version is None

    def test_describe(self):
        summary = _canvas(generation=0, version=7).describe()
        assert summary["title"] == "<empty - editable in-game>"
        assert summary["canvas_type"] == "Small (16x16)"
        assert summary["generation"] == "0 (in-game editable)"
        assert summary["version"] == "7"
        assert summary["pixels"] == 256

    def test_describe_missing_metadata(self):
        summary = _canvas().describe()
        assert summary["generation"] == "<not set>"


class TestHelpers:
    """Name generation and title/author advisory."""

    def test_generate_name(self):
        assert generate_name(1700000000) == f"{ROOT_UUID}_1700000000"
        assert generate_name().startswith(ROOT_UUID + "_")

    @pytest.mark.parametrize("title,author,warns", [
        ("T", "A", False),
        ("", "", False),
        (None, None, False),
        ("T", "", True),
        ("", "A", True),
        ("T", "  ", True),
    ])
    def test_check_title_author(self, title, author, warns):
        assert (check_title_author(title, author) is not None) == warns
