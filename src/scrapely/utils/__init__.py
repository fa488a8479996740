"""Shared helpers."""

from .atomic import atomic_write_stream, atomic_write_text

__all__ = ["atomic_write_stream", "atomic_write_text"]
