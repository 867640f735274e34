"""Type metadata buffers and their checksum."""

from __future__ import annotations

from enum import IntEnum

BUF_SIZE = 16384

_FNV_INITIAL_STATE = 0xCBF81CE484333325
_FNV_PRIME = 0x100000001B3
_U64_MASK = 0xFFFF_FFFF_FFFF_FFFF


class TypeCode(IntEnum):
    """One-byte codes that identify a type in metadata."""

    U8 = 0
    U16 = 1
    U32 = 2
    U64 = 3
    I8 = 4
    I16 = 5
    I32 = 6
    I64 = 7
    F32 = 8
    F64 = 9
    BOOL = 10
    STRING = 11
    OPTION = 12
    VEC = 13
    HASH_MAP = 14


class MetadataBuffer:
    """An immutable sequence of metadata bytes, at most ``BUF_SIZE`` long.

    Every ``concat*`` method returns a new buffer and leaves this one untouched.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes = b"") -> None:
        data = bytes(data)
        if len(data) > BUF_SIZE:
            raise ValueError(
                f"metadata of {len(data)} bytes exceeds the limit of {BUF_SIZE}"
            )
        self._data = data

    @classmethod
    def from_code(cls, value: int) -> MetadataBuffer:
        """Start a buffer holding the single byte ``value``."""
        return cls().concat_value(value)

    def _extend(self, extra: bytes) -> MetadataBuffer:
        return MetadataBuffer(self._data + extra)

    def concat(self, other: MetadataBuffer) -> MetadataBuffer:
        if len(self) + len(other) > BUF_SIZE:
            raise ValueError("concatenated metadata exceeds the buffer size")
        return self._extend(bytes(other))

    def concat_value(self, value: int) -> MetadataBuffer:
        if not 0 <= value <= 0xFF:
            raise ValueError(f"byte value out of range: {value}")
        if len(self) >= BUF_SIZE:
            raise ValueError("metadata buffer is full")
        return self._extend(bytes((value,)))

    def concat_u32(self, value: int) -> MetadataBuffer:
        """Append ``value`` as four little-endian bytes."""
        if not 0 <= value <= 0xFFFF_FFFF:
            raise ValueError(f"u32 value out of range: {value}")
        if len(self) + 4 > BUF_SIZE:
            raise ValueError("metadata buffer has no room for a u32")
        return self._extend(value.to_bytes(4, "little"))

    def concat_bool(self, value: bool) -> MetadataBuffer:
        return self.concat_value(1 if value else 0)

    def concat_str(self, string: str) -> MetadataBuffer:
        """Append a string prefixed by its one-byte UTF-8 length."""
        encoded = string.encode("utf-8")
        if len(encoded) >= 256:
            raise ValueError("string too long for a one-byte length prefix")
        if len(self) + len(encoded) >= BUF_SIZE:
            raise ValueError("metadata buffer has no room for the string")
        return self._extend(bytes((len(encoded),)) + encoded)

    def concat_long_str(self, string: str) -> MetadataBuffer:
        """Append a string prefixed by its two-byte little-endian UTF-8 length."""
        encoded = string.encode("utf-8")
        if len(self) + len(encoded) + 1 >= BUF_SIZE:
            raise ValueError("metadata buffer has no room for the string")
        prefix = (len(encoded) & 0xFFFF).to_bytes(2, "little")
        return self._extend(prefix + encoded)

    def into_array(self, size: int) -> bytes:
        """Return exactly ``size`` bytes: the contents, zero padded or cut."""
        if not 0 <= size <= BUF_SIZE:
            raise ValueError(f"array size must be between 0 and {BUF_SIZE}")
        return self._data[:size].ljust(size, b"\x00")

    def checksum(self) -> int:
        return checksum_metadata(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadataBuffer):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"MetadataBuffer({self._data!r})"


def checksum_metadata(buf: bytes) -> int:
    """Fold an FNV-1a style 64-bit hash of ``buf`` down to 16 bits."""
    state = _FNV_INITIAL_STATE
    for byte in bytes(buf):
        state ^= byte
        state = (state * _FNV_PRIME) & _U64_MASK
    return (state ^ (state >> 16) ^ (state >> 32) ^ (state >> 48)) & 0xFFFF