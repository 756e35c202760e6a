"""Event contract consumed by the framer.

The framer never looks inside an event; it only needs the byte blob
produced by ``serialize()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class Event(Protocol):
    """Anything that can produce its own wire representation."""

    def serialize(self) -> bytes: ...


@dataclass(frozen=True)
class RawEvent:
    """An event whose serialized bytes are already known."""

    data: bytes

    def serialize(self) -> bytes:
        return self.data

    @classmethod
    def from_hex(cls, text: str) -> RawEvent:
        return cls(data=bytes.fromhex(text))

    def __repr__(self) -> str:
        return f"RawEvent({self.data.hex(' ') if self.data else '(empty)'})"
