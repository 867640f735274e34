"""Byte buffers handed across a foreign boundary."""

from __future__ import annotations


class FFIBuffer:
    """An owned byte buffer with a length and a capacity.

    A buffer without data is the *null* buffer; it must have zero capacity.
    Destroying a buffer hands its bytes out once; it cannot be used after.
    """

    __slots__ = ("_data", "_capacity", "_destroyed")

    def __init__(self, data: bytes | None = b"", capacity: int | None = None) -> None:
        if data is None:
            if capacity not in (None, 0):
                raise ValueError("null FFIBuffer had non-zero capacity")
            self._data: bytearray | None = None
            self._capacity = 0
        else:
            self._data = bytearray(data)
            capacity = len(self._data) if capacity is None else capacity
            if capacity < 0:
                raise ValueError("buffer capacity negative or overflowed")
            if len(self._data) > capacity:
                raise ValueError("FFIBuffer length exceeds capacity")
            self._capacity = capacity
        self._destroyed = False

    @classmethod
    def new_with_size(cls, size: int) -> FFIBuffer:
        """Create a buffer of ``size`` zero bytes."""
        if size < 0:
            raise ValueError("buffer size cannot be negative")
        return cls(bytes(size))

    @classmethod
    def from_bytes(cls, data: bytes) -> FFIBuffer:
        return cls(data)

    @classmethod
    def null(cls) -> FFIBuffer:
        """The empty buffer with no data behind it."""
        return cls(None, 0)

    @property
    def is_null(self) -> bool:
        return self._data is None

    def _check_alive(self) -> None:
        if self._destroyed:
            raise ValueError("FFIBuffer has already been destroyed")

    def capacity(self) -> int:
        self._check_alive()
        return self._capacity

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        self._check_alive()
        return 0 if self._data is None else len(self._data)

    def destroy_into_bytes(self) -> bytes:
        """Take the contents out of the buffer, consuming it."""
        self._check_alive()
        self._destroyed = True
        data, self._data = self._data, None
        return b"" if data is None else bytes(data)

    def destroy(self) -> None:
        self.destroy_into_bytes()

    def __repr__(self) -> str:
        if self._destroyed:
            return "FFIBuffer(<destroyed>)"
        if self._data is None:
            return "FFIBuffer.null()"
        return f"FFIBuffer({bytes(self._data)!r}, capacity={self._capacity})"


class ForeignBytes:
    """A borrowed view of bytes owned by foreign code."""

    __slots__ = ("_data", "_length")

    def __init__(self, data: bytes | None, length: int | None = None) -> None:
        if length is None:
            length = 0 if data is None else len(data)
        self._data = None if data is None else memoryview(bytes(data))
        self._length = length

    def as_bytes(self) -> bytes:
        if self._data is None:
            if self._length != 0:
                raise ValueError("null ForeignBytes had non-zero length")
            return b""
        size = len(self)
        if size > len(self._data):
            raise ValueError("ForeignBytes length exceeds the available data")
        return bytes(self._data[:size])

    def is_empty(self) -> bool:
        return self._length == 0

    def __len__(self) -> int:
        if self._length < 0:
            raise ValueError("bytes length negative or overflowed")
        return self._length

    def __repr__(self) -> str:
        return f"ForeignBytes(length={self._length})"