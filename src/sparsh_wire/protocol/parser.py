"""Decoding of client replies.

Replies are read straight off the inbound stream; unlike outbound
messages they carry no type/length frame header.

The allowed-gestures reply is a 4-byte byte count followed by a run of
4-byte signed integers. A non-negative integer is a gesture ID. A negative
integer ``-N`` announces that the next ``N`` bytes hold a UTF-8 gesture
class name::

    remaining | id | -N | N bytes of UTF-8 | id | ...
"""

from __future__ import annotations

import logging
from typing import Protocol

from ..errors import ProtocolDecodeError, TruncatedStreamError
from ..models.gesture import GestureClassName, GestureDescriptor, GestureID
from .framing import INT32, unpack_int

logger = logging.getLogger(__name__)

INT_SIZE = INT32.size


class Reader(Protocol):
    """Source of reply bytes; blocks until exactly ``n`` bytes are read."""

    def read_exactly(self, n: int) -> bytes: ...


class BytesCursor:
    """A ``Reader`` over an in-memory reply."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._offset = 0

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def read_exactly(self, n: int) -> bytes:
        chunk = self._data[self._offset : self._offset + n]
        if len(chunk) < n:
            raise TruncatedStreamError(expected=n, received=len(chunk))
        self._offset += n
        return chunk


def read_int(reader: Reader) -> int:
    return unpack_int(reader.read_exactly(INT_SIZE))


def _read_descriptor(reader: Reader, remaining: int) -> tuple[GestureDescriptor, int]:
    """Read one descriptor and return it with the bytes it consumed."""
    if remaining < INT_SIZE:
        raise ProtocolDecodeError(
            f"Gesture reply has {remaining} bytes left, too few for a field"
        )

    value = read_int(reader)
    if value >= 0:
        return GestureID(value), INT_SIZE

    size = -value
    if INT_SIZE + size > remaining:
        raise ProtocolDecodeError(
            f"Gesture name of {size} bytes overruns reply "
            f"({remaining - INT_SIZE} bytes left)"
        )

    raw = reader.read_exactly(size)
    try:
        name = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolDecodeError(f"Gesture name is not valid UTF-8: {e}") from e
    return GestureClassName(name), INT_SIZE + size


def read_gesture_list(reader: Reader) -> list[GestureDescriptor]:
    """Read an allowed-gestures reply from ``reader``.

    Returns:
        Descriptors in the order they were transmitted.

    Raises:
        ProtocolDecodeError: If a field would overrun the declared byte
            count, a name is not valid UTF-8, or the stream ends early.
    """
    remaining = read_int(reader)
    gestures: list[GestureDescriptor] = []

    while remaining > 0:
        descriptor, consumed = _read_descriptor(reader, remaining)
        gestures.append(descriptor)
        remaining -= consumed

    logger.debug("Decoded %d gesture descriptors", len(gestures))
    return gestures


def decode_gesture_list(data: bytes) -> list[GestureDescriptor]:
    """Decode an allowed-gestures reply held in memory.

    Inspection helper for captured replies; the framer reads replies
    from its transport with :func:`read_gesture_list`.

    Trailing bytes after the declared length are an error.
    """
    cursor = BytesCursor(data)
    gestures = read_gesture_list(cursor)
    if cursor.remaining:
        raise ProtocolDecodeError(
            f"{cursor.remaining} trailing bytes after gesture reply"
        )
    return gestures


def read_group_id(reader: Reader) -> int:
    """Read a GET_GROUP_ID reply: one 4-byte signed group ID."""
    return read_int(reader)
