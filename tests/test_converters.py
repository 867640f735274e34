import pytest

from ffiwire.buffer import FFIBuffer
from ffiwire.converters import (
    BOOL,
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    STRING,
    U8,
    U16,
    U32,
    U64,
    BoolConverter,
    ByteReader,
    ConversionError,
    MapConverter,
    OptionConverter,
    PrimitiveConverter,
    SequenceConverter,
    StringConverter,
    check_remaining,
)
from ffiwire.metadata import MetadataBuffer, TypeCode


def _serialize(converter, obj):
    out = bytearray()
    converter.write(obj, out)
    return bytes(out)


@pytest.mark.parametrize(
    "converter, value",
    [
        (U8, 255),
        (I8, -128),
        (U16, 65535),
        (I16, -32768),
        (U32, 0xFFFF_FFFF),
        (I32, -(2**31)),
        (U64, 2**64 - 1),
        (I64, -(2**63)),
        (F32, 1.5),
        (F64, -2.25),
        (BOOL, True),
        (BOOL, False),
        (STRING, "héllo"),
        (STRING, ""),
    ],
)
def test_scalar_write_read_round_trip(converter, value):
    reader = ByteReader(_serialize(converter, value))
    assert converter.read(reader) == value
    assert reader.remaining() == 0


def test_u32_is_written_big_endian():
    out = bytearray()
    U32.write(0x01020304, out)
    assert bytes(out) == b"\x01\x02\x03\x04"


def test_string_is_length_prefixed():
    out = bytearray()
    STRING.write("hi", out)
    assert bytes(out) == b"\x00\x00\x00\x02hi"


def test_primitive_lower_and_lift_pass_through():
    assert I32.lower(-7) == -7
    assert I32.lift(42) == 42


def test_primitive_out_of_range_raises():
    with pytest.raises(ConversionError):
        U8.write(256, bytearray())


def test_primitive_read_short_buffer_raises():
    with pytest.raises(ConversionError, match="not enough bytes"):
        U64.read(ByteReader(b"\x00\x01"))


def test_bool_lower_lift():
    assert BOOL.lower(True) == 1
    assert BOOL.lower(False) == 0
    assert BOOL.lift(1) is True
    assert BOOL.lift(0) is False


def test_bool_lift_rejects_other_bytes():
    with pytest.raises(ConversionError, match="Boolean"):
        BOOL.lift(2)


def test_bool_read_rejects_other_bytes():
    with pytest.raises(ConversionError):
        BOOL.read(ByteReader(b"\xff"))


def test_string_lower_gives_raw_utf8_buffer():
    buf = STRING.lower("abc")
    assert buf.destroy_into_bytes() == "abc".encode("utf-8")


def test_string_lower_lift_round_trip():
    assert STRING.lift(STRING.lower("ünïcode")) == "ünïcode"


def test_string_lift_invalid_utf8_raises():
    with pytest.raises(ConversionError):
        STRING.lift(FFIBuffer.from_bytes(b"\xff\xfe"))


def test_string_read_invalid_utf8_raises():
    with pytest.raises(ConversionError):
        STRING.read(ByteReader(b"\x00\x00\x00\x01\xff"))


def test_string_read_negative_length_raises():
    with pytest.raises(ConversionError):
        STRING.read(ByteReader(b"\xff\xff\xff\xff"))


def test_string_read_truncated_raises():
    with pytest.raises(ConversionError, match="not enough bytes"):
        STRING.read(ByteReader(b"\x00\x00\x00\x05ab"))


def test_option_none_is_single_zero_tag():
    assert _serialize(OptionConverter(U8), None) == b"\x00"


def test_option_some_is_tag_then_value():
    data = _serialize(OptionConverter(U8), 9)
    assert data[:1] == b"\x01"
    assert U8.read(ByteReader(data[1:])) == 9


@pytest.mark.parametrize("value", [None, "text", ""])
def test_option_lower_lift_round_trip(value):
    conv = OptionConverter(STRING)
    assert conv.lift(conv.lower(value)) == value


def test_option_bad_tag_raises():
    with pytest.raises(ConversionError, match="Option"):
        OptionConverter(U8).read(ByteReader(b"\x02\x00"))


def test_sequence_round_trip():
    conv = SequenceConverter(I16)
    items = [1, -2, 300, -32768]
    assert conv.lift(conv.lower(items)) == items


def test_sequence_empty_round_trip():
    conv = SequenceConverter(STRING)
    buf = conv.lower([])
    assert len(buf) == 4
    assert conv.lift(buf) == []


def test_nested_sequence_of_options_round_trip():
    conv = SequenceConverter(OptionConverter(SequenceConverter(BOOL)))
    value = [None, [True, False], [], None]
    assert conv.lift(conv.lower(value)) == value


def test_sequence_truncated_raises():
    conv = SequenceConverter(U32)
    data = _serialize(conv, [1, 2, 3])[:-2]
    with pytest.raises(ConversionError):
        conv.read(ByteReader(data))


def test_map_round_trip():
    conv = MapConverter(STRING, SequenceConverter(F64))
    value = {"a": [1.0, 2.5], "b": [], "": [-0.5]}
    assert conv.lift(conv.lower(value)) == value


_LENGTH_TWO = b"\x00\x00\x00\x02"


def test_map_read_last_duplicate_wins():
    conv = MapConverter(U8, U8)
    data = _LENGTH_TWO + b"\x01\x0a" + b"\x01\x0b"
    assert conv.read(ByteReader(data)) == {1: 11}


def test_lift_from_buffer_rejects_trailing_bytes():
    conv = SequenceConverter(U8)
    data = _serialize(conv, [1]) + b"\x00\x00"
    with pytest.raises(ConversionError, match="junk data"):
        conv.lift_from_buffer(FFIBuffer.from_bytes(data))


def test_lift_from_buffer_consumes_buffer():
    conv = OptionConverter(U8)
    buf = conv.lower_into_buffer(5)
    assert conv.lift_from_buffer(buf) == 5
    with pytest.raises(ValueError):
        len(buf)


def test_lift_from_null_buffer_reports_missing_bytes():
    with pytest.raises(ConversionError, match="not enough bytes"):
        OptionConverter(U8).lift_from_buffer(FFIBuffer.null())


def test_byte_reader_take_advances():
    reader = ByteReader(b"abcdef")
    assert reader.take(2) == b"ab"
    assert reader.remaining() == 4
    assert reader.take(4) == b"cdef"
    assert reader.remaining() == 0


def test_check_remaining():
    reader = ByteReader(b"abc")
    check_remaining(reader, 3)
    assert reader.remaining() == 3
    with pytest.raises(ConversionError, match=r"\(3 < 4\)"):
        check_remaining(reader, 4)


@pytest.mark.parametrize(
    "converter, code",
    [
        (U8, TypeCode.U8),
        (I8, TypeCode.I8),
        (U16, TypeCode.U16),
        (I16, TypeCode.I16),
        (U32, TypeCode.U32),
        (I32, TypeCode.I32),
        (U64, TypeCode.U64),
        (I64, TypeCode.I64),
        (F32, TypeCode.F32),
        (F64, TypeCode.F64),
        (BOOL, TypeCode.BOOL),
        (STRING, TypeCode.STRING),
    ],
)
def test_scalar_type_id_meta(converter, code):
    assert converter.type_id_meta() == MetadataBuffer.from_code(code)


def test_compound_type_id_meta():
    conv = OptionConverter(SequenceConverter(U8))
    expected = bytes([TypeCode.OPTION, TypeCode.VEC, TypeCode.U8])
    assert bytes(conv.type_id_meta()) == expected


def test_map_type_id_meta():
    conv = MapConverter(STRING, BOOL)
    expected = bytes([TypeCode.HASH_MAP, TypeCode.STRING, TypeCode.BOOL])
    assert bytes(conv.type_id_meta()) == expected


def test_ffi_defaults():
    assert U32.ffi_default() == 0
    assert isinstance(F64.ffi_default(), float) and F64.ffi_default() == 0.0
    assert BOOL.ffi_default() == 0
    default = STRING.ffi_default()
    assert default.is_null and len(default) == 0
    assert SequenceConverter(U8).ffi_default().is_null


def test_custom_primitive_converter():
    conv = PrimitiveConverter(">H", TypeCode.U16)
    assert _serialize(conv, 0x0102) == b"\x01\x02"
    assert conv.read(ByteReader(b"\x01\x02")) == 0x0102


def test_fresh_converter_instances_behave_like_shared_ones():
    assert BoolConverter().read(ByteReader(b"\x01")) is True
    assert StringConverter().lift(STRING.lower("x")) == "x"