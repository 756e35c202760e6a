"""Frame builder and parser for server-to-client messages.

Frame layout::

    +---------+-----------+------------------+
    |  Type   |  Length   |     Payload      |
    | 1 byte  |  4 bytes  |  Length bytes    |
    +---------+-----------+------------------+

- Type: message type tag (see :class:`~.commands.MessageType`)
- Length: big-endian unsigned count of payload bytes (excludes type and length)
- Payload: verb-specific content

All multi-byte integers on the wire are big-endian.
"""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass

HEADER = struct.Struct(">BI")
HEADER_SIZE = HEADER.size  # 1(type) + 4(length)
MAX_PAYLOAD = 0xFFFFFFFF

INT32 = struct.Struct(">i")
FLOAT32 = struct.Struct(">f")


@dataclass
class Frame:
    """A parsed protocol frame."""

    type: int
    payload: bytes

    @property
    def length(self) -> int:
        return len(self.payload)

    def __repr__(self) -> str:
        return (
            f"Frame(type={self.type}, length={self.length}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def pack_int(value: int) -> bytes:
    """Encode a signed 32-bit integer."""
    return INT32.pack(value)


def pack_float(value: float) -> bytes:
    """Encode a float in IEEE 754 single-precision layout.

    Values too large for single precision become infinity of the same sign.
    """
    try:
        return FLOAT32.pack(value)
    except OverflowError:
        return FLOAT32.pack(math.copysign(math.inf, value))


def unpack_int(data: bytes) -> int:
    return INT32.unpack(data)[0]


def build_frame(msg_type: int, payload: bytes = b"") -> bytes:
    """Build a complete frame: header followed by payload.

    Args:
        msg_type: Single-byte message type tag.
        payload: Message-specific payload bytes.

    Returns:
        The header and payload as one ``bytes`` object, ready to be written
        to the transport in a single call.
    """
    if not 0 <= msg_type <= 0xFF:
        raise ValueError(f"Message type must be 0-255, got {msg_type}")
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"Payload too large: {len(payload)} bytes")
    return HEADER.pack(msg_type, len(payload)) + bytes(payload)


def parse_frame(data: bytes) -> Frame | None:
    """Parse exactly one frame.

    Inspection helper for captured outbound bytes; the framer only writes.

    Returns:
        A ``Frame`` if ``data`` holds a header and exactly the declared
        number of payload bytes, or ``None`` otherwise.
    """
    if len(data) < HEADER_SIZE:
        return None

    msg_type, length = HEADER.unpack_from(data)
    if len(data) != HEADER_SIZE + length:
        return None

    return Frame(type=msg_type, payload=bytes(data[HEADER_SIZE:]))


def split_frames(data: bytes) -> list[Frame]:
    """Split a byte stream holding back-to-back frames.

    Inspection helper for captured outbound bytes.

    Raises:
        ValueError: If the stream ends inside a header or payload.
    """
    frames: list[Frame] = []
    offset = 0
    while offset < len(data):
        if len(data) - offset < HEADER_SIZE:
            raise ValueError(f"Truncated frame header at offset {offset}")
        msg_type, length = HEADER.unpack_from(data, offset)
        start = offset + HEADER_SIZE
        end = start + length
        if end > len(data):
            raise ValueError(
                f"Frame at offset {offset} declares {length} payload bytes, "
                f"only {len(data) - start} available"
            )
        frames.append(Frame(type=msg_type, payload=bytes(data[start:end])))
        offset = end

    return frames
