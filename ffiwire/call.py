"""Call status codes reported across a foreign boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from .buffer import FFIBuffer


class StatusCode(IntEnum):
    """Outcome of a foreign call."""

    SUCCESS = 0
    ERROR = 1
    UNEXPECTED_ERROR = 2
    CANCELLED = 3

    @classmethod
    def from_code(cls, value: int) -> StatusCode:
        """Interpret a raw status code, raising ValueError if it is unknown."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"unknown status code: {value}") from None


@dataclass
class ErrStatus:
    """A raw status code with the serialized error that goes with it."""

    code: int = StatusCode.SUCCESS
    error: FFIBuffer = field(default_factory=FFIBuffer.null)

    def status(self) -> StatusCode:
        return StatusCode.from_code(self.code)