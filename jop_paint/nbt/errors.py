"""Tag codec exceptions."""


class NBTError(Exception):
    """Base class for tag codec errors."""

    pass


class FormatError(NBTError, ValueError):
    """Raised when a byte buffer is not a well-formed tag tree.

    Covers truncated buffers, unknown tag-type bytes, negative or oversized
    declared lengths, and invalid UTF-8 strings. Decoding aborts on the first
    violation; no partial tree is returned.
    """

    def __init__(self, msg: str, offset: int = -1) -> None:
        if offset >= 0:
            msg = f"{msg} (at byte {offset})"
        super().__init__(msg)
        self.offset = offset


class EncodeError(NBTError, ValueError):
    """Raised when a value cannot be written as the requested tag kind."""

    pass
