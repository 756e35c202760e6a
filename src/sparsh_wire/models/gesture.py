"""Gesture descriptors returned by the client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class GestureID:
    """A built-in gesture referenced by its numeric identifier."""

    value: int

    def to_dict(self) -> dict:
        return {"kind": "id", "value": self.value}


@dataclass(frozen=True)
class GestureClassName:
    """A custom gesture referenced by its class name."""

    name: str

    def to_dict(self) -> dict:
        return {"kind": "class", "name": self.name}


GestureDescriptor = Union[GestureID, GestureClassName]
