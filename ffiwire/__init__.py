"""Typed binary wire format, buffers, call status and type metadata for foreign-function calls."""

__version__ = "0.1.0"
__all__ = ["buffer", "call", "converters", "metadata"]