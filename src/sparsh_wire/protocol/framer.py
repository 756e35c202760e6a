"""Server-to-client message framer.

Usage::

    framer = MessageFramer(conn)
    gestures = framer.query_gestures(group_id)
    group_id = framer.resolve_group_id(x, y)
    framer.send_events(group_id, events)
    framer.send_error(error_code)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Protocol

from ..models.gesture import GestureDescriptor
from .commands import (
    EventLike,
    MessageType,
    error_payload,
    event_payload,
    gestures_payload,
    group_id_payload,
)
from .framing import HEADER_SIZE, build_frame
from .parser import Reader, read_gesture_list, read_group_id

logger = logging.getLogger(__name__)


class Transport(Reader, Protocol):
    """A ``Reader`` that also accepts whole frames for sending."""

    def write(self, data: bytes) -> None: ...


class MessageFramer:
    """Encodes requests into frames and decodes the client's replies.

    One framer owns one transport. Each verb holds the framer's lock for
    its whole duration, so a request and the reply read that follows it
    are never separated by another thread's frame.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._buffer = bytearray()
        self._lock = threading.RLock()
        self._frames_sent = 0

    @property
    def frames_sent(self) -> int:
        return self._frames_sent

    def query_gestures(self, group_id: int) -> list[GestureDescriptor]:
        """Ask the client which gestures are allowed for a group.

        Args:
            group_id: The group to query. Passed through uninterpreted.

        Returns:
            Gesture IDs and gesture class names, in transmission order.

        Raises:
            TransportError: If the request cannot be written.
            ProtocolDecodeError: If the reply is malformed or truncated.
        """
        with self._lock:
            with self._message(MessageType.GET_ALLOWED_GESTURES) as buf:
                buf += gestures_payload(group_id)
            return read_gesture_list(self._transport)

    def resolve_group_id(self, x: float, y: float) -> int:
        """Ask the client which group owns the point ``(x, y)``."""
        with self._lock:
            with self._message(MessageType.GET_GROUP_ID) as buf:
                buf += group_id_payload(x, y)
            return read_group_id(self._transport)

    def send_events(self, group_id: int, events: Iterable[EventLike]) -> None:
        """Send each event to the client as its own EVENT frame.

        Frames are written in order. A transport failure aborts the batch;
        events already written stay written.
        """
        with self._lock:
            for event in events:
                with self._message(MessageType.EVENT) as buf:
                    buf += event_payload(group_id, event)

    def send_error(self, error_code: int) -> None:
        """Send an error signal (an EVENT frame for group -1)."""
        with self._lock:
            with self._message(MessageType.EVENT) as buf:
                buf += error_payload(error_code)

    @contextmanager
    def _message(self, msg_type: MessageType) -> Iterator[bytearray]:
        """Scope the write buffer to one frame.

        The buffer is flushed when the block exits normally and discarded
        when it raises.
        """
        self._buffer.clear()
        try:
            yield self._buffer
        except BaseException:
            self._buffer.clear()
            raise
        self._flush(msg_type)

    def _flush(self, msg_type: MessageType) -> None:
        """Write header and buffered payload as one unit, then reset."""
        try:
            frame = build_frame(msg_type, self._buffer)
        finally:
            self._buffer.clear()
        logger.debug(
            "Sending %s frame (%d payload bytes)",
            msg_type.name,
            len(frame) - HEADER_SIZE,
        )
        self._transport.write(frame)
        self._frames_sent += 1
