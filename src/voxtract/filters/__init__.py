"""Construcao e serializacao de filter graphs de audio."""

from voxtract.filters.graph import build, serialize

__all__ = ["build", "serialize"]
