"""Binary tag codec (nested, type-tagged, big-endian).

Convenience imports:
    from jop_paint.nbt import decode, encode, encode_inferred, Tag, TagType
"""

from .errors import EncodeError, FormatError, NBTError
from .reader import decode, read_root
from .tags import Tag, TagList, TagType
from .writer import encode, encode_inferred, infer_tag, infer_tag_type, narrowest_int_type

__all__ = [
    'EncodeError',
    'FormatError',
    'NBTError',
    'Tag',
    'TagList',
    'TagType',
    'decode',
    'encode',
    'encode_inferred',
    'infer_tag',
    'infer_tag_type',
    'narrowest_int_type',
    'read_root',
]
