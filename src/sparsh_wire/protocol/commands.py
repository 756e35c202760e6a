"""Message type constants and payload builders.

Each outbound message is identified by a single-byte type tag. Errors are
carried on the ``EVENT`` tag, marked by a group ID of ``ERROR_GROUP_ID``.

The ``*_payload`` functions feed :class:`~.framer.MessageFramer`. The
``build_*`` functions return complete frames without a transport, for
inspecting or replaying requests.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Iterable, Union

from ..models.event import Event
from .framing import build_frame, pack_float, pack_int


class MessageType(IntEnum):
    """Server-to-client message type tags."""

    EVENT = 0
    GET_GROUP_ID = 1
    GET_ALLOWED_GESTURES = 2


ERROR_GROUP_ID = -1

EventLike = Union[Event, bytes, bytearray]


def event_bytes(event: EventLike) -> bytes:
    """Return the serialized form of an event or raw event blob."""
    if isinstance(event, (bytes, bytearray)):
        return bytes(event)
    return event.serialize()


def gestures_payload(group_id: int) -> bytes:
    return pack_int(group_id)


def group_id_payload(x: float, y: float) -> bytes:
    return pack_float(x) + pack_float(y)


def event_payload(group_id: int, event: EventLike) -> bytes:
    return pack_int(group_id) + event_bytes(event)


def error_payload(error_code: int) -> bytes:
    return pack_int(ERROR_GROUP_ID) + pack_int(error_code)


def build_get_allowed_gestures(group_id: int) -> bytes:
    """Build a GET_ALLOWED_GESTURES request for a group."""
    return build_frame(MessageType.GET_ALLOWED_GESTURES, gestures_payload(group_id))


def build_get_group_id(x: float, y: float) -> bytes:
    """Build a GET_GROUP_ID request for a touch location.

    Args:
        x: Horizontal coordinate, sent as a 32-bit float.
        y: Vertical coordinate, sent as a 32-bit float.
    """
    return build_frame(MessageType.GET_GROUP_ID, group_id_payload(x, y))


def build_event(group_id: int, event: EventLike) -> bytes:
    """Build one EVENT frame carrying a single serialized event."""
    return build_frame(MessageType.EVENT, event_payload(group_id, event))


def build_events(group_id: int, events: Iterable[EventLike]) -> list[bytes]:
    """Build one EVENT frame per event, preserving order."""
    return [build_event(group_id, event) for event in events]


def build_error(error_code: int) -> bytes:
    """Build an error signal: an EVENT frame addressed to group -1."""
    return build_frame(MessageType.EVENT, error_payload(error_code))
