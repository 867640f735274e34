# ffiwire

`ffiwire` encodes and decodes typed values in a compact big-endian binary format. The format is meant for passing data between a host program and foreign code. The package also builds the type-description metadata and 16-bit checksums that both sides can use to agree on signatures.

## What it provides

### Converters (`ffiwire.converters`)

Each converter turns a Python value into its foreign form and back:

- `PrimitiveConverter(fmt, code)` handles fixed-width integers and floats. `fmt` is a `struct` format; it is read big-endian unless it starts with a byte-order character.
- `BoolConverter` handles booleans, carried as a signed byte that must be `0` or `1`.
- `StringConverter` handles strings, carried as UTF-8.
- `OptionConverter(inner)`, `SequenceConverter(item)` and `MapConverter(key, value)` are built from other converters.

The module also has ready-made instances: `U8`, `I8`, `U16`, `I16`, `U32`, `I32`, `U64`, `I64`, `F32`, `F64`, `BOOL` and `STRING`.

Every converter has these methods:

- `write(obj, out)` appends the serialized value to a `bytearray`.
- `read(reader)` reads a value back from a `ByteReader`.
- `lower(obj)` and `lift(value)` convert to and from the foreign form.
  - Numbers pass through unchanged.
  - Booleans become `0`/`1`.
  - Strings become an `FFIBuffer` of raw UTF-8.
  - Options, sequences and maps become an `FFIBuffer` holding their serialized form.
- `lower_into_buffer(obj)` and `lift_from_buffer(buf)` wrap a whole serialized value in an `FFIBuffer`. Lifting consumes the buffer and rejects any bytes left over.
- `type_id_meta()` returns the `MetadataBuffer` that identifies the type.
- `ffi_default()` returns the value handed back when a call fails. This is `0` or `0.0` for numbers, `0` for booleans and a null `FFIBuffer` otherwise.

`ByteReader` is a cursor over bytes, with `remaining()` and `take(count)`. `check_remaining(reader, num_bytes)` raises `ConversionError` when too few bytes are left.

### Buffers (`ffiwire.buffer`)

`FFIBuffer` is an owned byte buffer with a length and a capacity.

- Create one with `FFIBuffer(data, capacity)`, `FFIBuffer.from_bytes(data)`, `FFIBuffer.new_with_size(size)` (zero-filled) or `FFIBuffer.null()`.
- A null buffer has no data behind it and zero capacity. The `is_null` property tells you whether a buffer is null.
- `destroy_into_bytes()` hands the contents out once. After that, any use of the buffer raises `ValueError`.

`ForeignBytes(data, length)` is a read-only view of bytes owned by someone else.

- `as_bytes()` returns the first `length` bytes.
- It raises `ValueError` when `length` exceeds the data, or when null data comes with a non-zero length.

### Metadata (`ffiwire.metadata`)

- `TypeCode` lists the one-byte type codes, `U8` = 0 through `HASH_MAP` = 14.
- `MetadataBuffer` is an immutable byte string of at most 16384 bytes.
  - It is built with `from_code`, `concat`, `concat_value`, `concat_u32` (little-endian), `concat_bool`, `concat_str` (one-byte length prefix) and `concat_long_str` (two-byte little-endian length prefix).
  - `into_array(size)` returns the contents zero-padded or truncated to `size` bytes.
- `MetadataBuffer.checksum()` and `checksum_metadata(buf)` fold a 64-bit FNV-style hash down to 16 bits.

### Call status (`ffiwire.call`)

- `StatusCode` has the members `SUCCESS`, `ERROR`, `UNEXPECTED_ERROR` and `CANCELLED`. `StatusCode.from_code(value)` raises `ValueError` for unknown codes.
- `ErrStatus` pairs a raw `code` with an `error` buffer. Its `status()` method interprets the code.

## Installation

```
pip install .
```

## Example

```python
from ffiwire.converters import (
    I32,
    STRING,
    ConversionError,
    MapConverter,
    OptionConverter,
    SequenceConverter,
)

names = SequenceConverter(OptionConverter(STRING))

buf = names.lower_into_buffer(["alpha", None, "gamma"])
assert names.lift_from_buffer(buf) == ["alpha", None, "gamma"]

scores = MapConverter(STRING, I32)
meta = scores.type_id_meta()
print(bytes(meta), meta.checksum())   # b'\x0e\x0b\x06' and its checksum

try:
    I32.lift_from_buffer(scores.lower_into_buffer({"a": 1}))
except ConversionError as exc:
    print("rejected:", exc)           # junk data left in buffer ...
```

## Wire format

All serialized values are big-endian.

- **Numbers** are written at their natural width.
- **Booleans** are one byte, `0` or `1`.
- **Strings** are a signed 32-bit byte length followed by UTF-8 bytes.
- **Optional values** are a one-byte tag, `0` for `None` or `1` followed by the value.
- **Sequences** are a signed 32-bit count followed by the items.
- **Maps** are a signed 32-bit count followed by each key and its value.

`ConversionError` is raised in these cases:

- the input is truncated;
- a boolean or tag byte is not `0` or `1`;
- a string is not valid UTF-8;
- a length is negative or does not fit in 32 bits;
- a number does not fit its format;
- bytes are left over after lifting.

## What it does not do

`ffiwire` only builds and reads values, buffers and metadata. It does not load libraries, call foreign functions or generate bindings. The caller moves the bytes across the boundary.

## Running the tests

```
pip install ".[test]"
pytest
```