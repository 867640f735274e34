"""Converters between Python values and their wire and foreign-call forms.

Scalars travel as themselves. Strings travel as an ``FFIBuffer`` of UTF-8 bytes.
Options, sequences and maps travel as an ``FFIBuffer`` holding their serialized
form. The serialized form is big-endian, and every length is a signed 32-bit
prefix.
"""

from __future__ import annotations

import struct
from typing import Any

from .buffer import FFIBuffer
from .metadata import MetadataBuffer, TypeCode

_I32_MAX = 0x7FFF_FFFF
_LENGTH = struct.Struct(">i")
_TAG = struct.Struct(">b")


class ConversionError(Exception):
    """Raised when a value cannot be lowered, lifted, written or read."""


class ByteReader:
    """A cursor over bytes that are consumed from the front."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, count: int) -> bytes:
        """Consume and return the next ``count`` bytes."""
        check_remaining(self, count)
        chunk = bytes(self._data[self._pos : self._pos + count])
        self._pos += count
        return chunk


def check_remaining(reader: ByteReader, num_bytes: int) -> None:
    """Raise ConversionError if fewer than ``num_bytes`` bytes are left."""
    remaining = reader.remaining()
    if remaining < num_bytes:
        raise ConversionError(
            f"not enough bytes remaining in buffer ({remaining} < {num_bytes})"
        )


def _write_length(count: int, out: bytearray) -> None:
    if count > _I32_MAX:
        raise ConversionError(f"length {count} does not fit in an i32")
    out += _LENGTH.pack(count)


def _read_length(reader: ByteReader) -> int:
    (length,) = _LENGTH.unpack(reader.take(_LENGTH.size))
    if length < 0:
        raise ConversionError(f"negative length in buffer: {length}")
    return length


class Converter:
    """Base converter whose foreign form is an ``FFIBuffer`` of serialized bytes.

    Subclasses implement ``write``, ``read`` and ``type_id_meta``; scalar types
    override ``lower``, ``lift`` and ``ffi_default`` as well.
    """

    def lower(self, obj: Any) -> Any:
        return self.lower_into_buffer(obj)

    def write(self, obj: Any, out: bytearray) -> None:
        raise NotImplementedError

    def lift(self, value: Any) -> Any:
        return self.lift_from_buffer(value)

    def read(self, reader: ByteReader) -> Any:
        raise NotImplementedError

    def lift_from_buffer(self, buf: FFIBuffer) -> Any:
        """Read a value from ``buf``, consuming it; every byte must be used."""
        reader = ByteReader(buf.destroy_into_bytes())
        value = self.read(reader)
        left = reader.remaining()
        if left:
            raise ConversionError(
                f"junk data left in buffer after lifting (count: {left})"
            )
        return value

    def lower_into_buffer(self, obj: Any) -> FFIBuffer:
        out = bytearray()
        self.write(obj, out)
        return FFIBuffer.from_bytes(bytes(out))

    def type_id_meta(self) -> MetadataBuffer:
        raise NotImplementedError

    def ffi_default(self) -> Any:
        """The value returned across the boundary when a call fails."""
        return FFIBuffer.null()


class PrimitiveConverter(Converter):
    """A fixed-size number, passed through unchanged and written big-endian."""

    def __init__(self, fmt: str, code: int) -> None:
        self._struct = struct.Struct(fmt if fmt[:1] in "<>!=@" else ">" + fmt)
        self._code = code
        self._is_float = self._struct.format[-1:] in ("f", "d", "e")

    def lower(self, obj: Any) -> Any:
        return obj

    def lift(self, value: Any) -> Any:
        return value

    def write(self, obj: Any, out: bytearray) -> None:
        try:
            out += self._struct.pack(obj)
        except struct.error as exc:
            raise ConversionError(str(exc)) from exc

    def read(self, reader: ByteReader) -> Any:
        (value,) = self._struct.unpack(reader.take(self._struct.size))
        return value

    def type_id_meta(self) -> MetadataBuffer:
        return MetadataBuffer.from_code(self._code)

    def ffi_default(self) -> Any:
        return 0.0 if self._is_float else 0

    def __repr__(self) -> str:
        return f"PrimitiveConverter({self._struct.format!r}, {self._code})"


class BoolConverter(Converter):
    """A boolean carried as a signed byte that must be 0 or 1."""

    def lower(self, obj: bool) -> int:
        return 1 if obj else 0

    def lift(self, value: int) -> bool:
        if value == 0:
            return False
        if value == 1:
            return True
        raise ConversionError("unexpected byte for Boolean")

    def write(self, obj: bool, out: bytearray) -> None:
        out += _TAG.pack(self.lower(obj))

    def read(self, reader: ByteReader) -> bool:
        (value,) = _TAG.unpack(reader.take(1))
        return self.lift(value)

    def type_id_meta(self) -> MetadataBuffer:
        return MetadataBuffer.from_code(TypeCode.BOOL)

    def ffi_default(self) -> int:
        return 0


class StringConverter(Converter):
    """A string: raw UTF-8 in a buffer, or length-prefixed when serialized."""

    def lower(self, obj: str) -> FFIBuffer:
        return FFIBuffer.from_bytes(obj.encode("utf-8"))

    def lift(self, value: FFIBuffer) -> str:
        return self._decode(value.destroy_into_bytes())

    def write(self, obj: str, out: bytearray) -> None:
        encoded = obj.encode("utf-8")
        _write_length(len(encoded), out)
        out += encoded

    def read(self, reader: ByteReader) -> str:
        length = _read_length(reader)
        return self._decode(reader.take(length))

    @staticmethod
    def _decode(data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConversionError(f"invalid UTF-8 in string: {exc}") from exc

    def type_id_meta(self) -> MetadataBuffer:
        return MetadataBuffer.from_code(TypeCode.STRING)


class OptionConverter(Converter):
    """An optional value: tag byte 0 for None, 1 followed by the value."""

    def __init__(self, inner: Converter) -> None:
        self.inner = inner

    def write(self, obj: Any, out: bytearray) -> None:
        if obj is None:
            out += _TAG.pack(0)
        else:
            out += _TAG.pack(1)
            self.inner.write(obj, out)

    def read(self, reader: ByteReader) -> Any:
        (tag,) = _TAG.unpack(reader.take(1))
        if tag == 0:
            return None
        if tag == 1:
            return self.inner.read(reader)
        raise ConversionError("unexpected tag byte for Option")

    def type_id_meta(self) -> MetadataBuffer:
        return MetadataBuffer.from_code(TypeCode.OPTION).concat(
            self.inner.type_id_meta()
        )


class SequenceConverter(Converter):
    """A list: an i32 count followed by each item."""

    def __init__(self, item: Converter) -> None:
        self.item = item

    def write(self, obj: Any, out: bytearray) -> None:
        items = list(obj)
        _write_length(len(items), out)
        for element in items:
            self.item.write(element, out)

    def read(self, reader: ByteReader) -> list:
        length = _read_length(reader)
        return [self.item.read(reader) for _ in range(length)]

    def type_id_meta(self) -> MetadataBuffer:
        return MetadataBuffer.from_code(TypeCode.VEC).concat(self.item.type_id_meta())


class MapConverter(Converter):
    """A dict: an i32 count followed by each key and its value."""

    def __init__(self, key: Converter, value: Converter) -> None:
        self.key = key
        self.value = value

    def write(self, obj: Any, out: bytearray) -> None:
        _write_length(len(obj), out)
        for key, value in obj.items():
            self.key.write(key, out)
            self.value.write(value, out)

    def read(self, reader: ByteReader) -> dict:
        length = _read_length(reader)
        result = {}
        for _ in range(length):
            key = self.key.read(reader)
            result[key] = self.value.read(reader)
        return result

    def type_id_meta(self) -> MetadataBuffer:
        return (
            MetadataBuffer.from_code(TypeCode.HASH_MAP)
            .concat(self.key.type_id_meta())
            .concat(self.value.type_id_meta())
        )


U8 = PrimitiveConverter(">B", TypeCode.U8)
I8 = PrimitiveConverter(">b", TypeCode.I8)
U16 = PrimitiveConverter(">H", TypeCode.U16)
I16 = PrimitiveConverter(">h", TypeCode.I16)
U32 = PrimitiveConverter(">I", TypeCode.U32)
I32 = PrimitiveConverter(">i", TypeCode.I32)
U64 = PrimitiveConverter(">Q", TypeCode.U64)
I64 = PrimitiveConverter(">q", TypeCode.I64)
F32 = PrimitiveConverter(">f", TypeCode.F32)
F64 = PrimitiveConverter(">d", TypeCode.F64)
BOOL = BoolConverter()
STRING = StringConverter()