"""Tests for the message framer's four verbs."""

from __future__ import annotations

import struct
import threading

import pytest

from sparsh_wire.errors import ProtocolDecodeError, TransportError
from sparsh_wire.models.event import RawEvent
from sparsh_wire.models.gesture import GestureClassName, GestureID
from sparsh_wire.protocol.commands import MessageType
from sparsh_wire.protocol.framer import MessageFramer, Transport
from sparsh_wire.protocol.framing import HEADER_SIZE, parse_frame, split_frames
from sparsh_wire.protocol.parser import BytesCursor, Reader


class FakeTransport:
    """Records writes and serves reads from a canned reply."""

    def __init__(self, reply: bytes = b"", fail_on_write: int | None = None) -> None:
        self.writes: list[bytes] = []
        self._reply = BytesCursor(reply)
        self._fail_on_write = fail_on_write

    @property
    def bytes_read(self) -> int:
        return self._reply.offset

    def write(self, data: bytes) -> None:
        if self._fail_on_write is not None and len(self.writes) == self._fail_on_write:
            raise TransportError("connection reset")
        self.writes.append(bytes(data))

    def read_exactly(self, n: int) -> bytes:
        return self._reply.read_exactly(n)


class _BrokenEvent:
    def serialize(self) -> bytes:
        raise RuntimeError("cannot serialize")


def _only_frame(transport: FakeTransport):
    assert len(transport.writes) == 1
    frame = parse_frame(transport.writes[0])
    assert frame is not None
    return frame


# ─── query_gestures ──────────────────────────────────────────────────

def test_query_gestures_request():
    """The request is one GET_ALLOWED_GESTURES frame with the group ID."""
    transport = FakeTransport(struct.pack(">i", 0))
    MessageFramer(transport).query_gestures(9)
    frame = _only_frame(transport)
    assert frame.type == MessageType.GET_ALLOWED_GESTURES
    assert frame.payload == b"\x00\x00\x00\x09"


def test_query_gestures_reply():
    """The raw reply following the request is decoded in order."""
    reply = struct.pack(">iii", 16, 5, -4) + b"Drag" + struct.pack(">i", 0)
    framer = MessageFramer(FakeTransport(reply))
    assert framer.query_gestures(1) == [
        GestureID(5),
        GestureClassName("Drag"),
        GestureID(0),
    ]


def test_query_gestures_empty_reply():
    """A zero count yields no gestures and reads only the counter."""
    transport = FakeTransport(struct.pack(">i", 0))
    assert MessageFramer(transport).query_gestures(1) == []
    assert transport.bytes_read == 4


def test_query_gestures_negative_group():
    """Negative group IDs are sent as-is."""
    transport = FakeTransport(struct.pack(">i", 0))
    MessageFramer(transport).query_gestures(-2)
    assert _only_frame(transport).payload == b"\xFF\xFF\xFF\xFE"


def test_query_gestures_malformed_reply():
    """Length accounting errors surface as ProtocolDecodeError."""
    reply = struct.pack(">ii", 6, -4) + b"Drag"
    with pytest.raises(ProtocolDecodeError):
        MessageFramer(FakeTransport(reply)).query_gestures(1)


def test_query_gestures_reply_missing():
    """No reply at all is a decode error, after the request was sent."""
    transport = FakeTransport(b"")
    with pytest.raises(ProtocolDecodeError):
        MessageFramer(transport).query_gestures(1)
    assert len(transport.writes) == 1


# ─── resolve_group_id ────────────────────────────────────────────────

def test_resolve_group_id():
    """x then y are sent as float32 and the integer reply returned."""
    transport = FakeTransport(struct.pack(">i", 12))
    assert MessageFramer(transport).resolve_group_id(0.5, 0.75) == 12
    frame = _only_frame(transport)
    assert frame.type == MessageType.GET_GROUP_ID
    assert frame.payload == struct.pack(">ff", 0.5, 0.75)


@pytest.mark.parametrize(
    "x, y",
    [
        (0.0, -0.0),
        (-1.5, -1234.5),
        (struct.unpack(">f", struct.pack(">f", 0.1))[0], 1.0),
        (3.4028234663852886e38, 1.401298464324817e-45),
        (16777216.0, -16777216.0),
    ],
)
def test_resolve_group_id_coordinates_exact(x, y):
    """Representable coordinates survive encoding bit for bit."""
    transport = FakeTransport(struct.pack(">i", 0))
    MessageFramer(transport).resolve_group_id(x, y)
    payload = _only_frame(transport).payload
    assert payload == struct.pack(">f", x) + struct.pack(">f", y)
    decoded_x, decoded_y = struct.unpack(">ff", payload)
    assert decoded_x == x
    assert decoded_y == y


def test_resolve_group_id_negative_zero_sign():
    """The sign of -0.0 is kept."""
    transport = FakeTransport(struct.pack(">i", 0))
    MessageFramer(transport).resolve_group_id(-0.0, 0.0)
    assert _only_frame(transport).payload[:4] == b"\x80\x00\x00\x00"


def test_resolve_group_id_stream_closed():
    """A short reply is a decode error."""
    with pytest.raises(ProtocolDecodeError):
        MessageFramer(FakeTransport(b"\x00\x00\x01")).resolve_group_id(0.0, 0.0)


# ─── send_events ─────────────────────────────────────────────────────

def test_send_events_one_frame_per_event():
    """Two events produce two EVENT frames in order, each for group 7."""
    transport = FakeTransport()
    e1, e2 = RawEvent(b"\x01\x02"), RawEvent(b"\x03")
    MessageFramer(transport).send_events(7, [e1, e2])

    assert len(transport.writes) == 2
    frames = [parse_frame(w) for w in transport.writes]
    assert all(f.type == MessageType.EVENT for f in frames)
    assert all(f.payload[:4] == b"\x00\x00\x00\x07" for f in frames)
    assert frames[0].payload[4:] == b"\x01\x02"
    assert frames[1].payload[4:] == b"\x03"


def test_send_events_empty_batch():
    """No events means no frames."""
    transport = FakeTransport()
    MessageFramer(transport).send_events(1, [])
    assert transport.writes == []


def test_send_events_aborts_on_transport_error():
    """Earlier events stay sent; the failure propagates."""
    transport = FakeTransport(fail_on_write=1)
    framer = MessageFramer(transport)
    events = [RawEvent(b"a"), RawEvent(b"b"), RawEvent(b"c")]
    with pytest.raises(TransportError):
        framer.send_events(4, events)
    assert len(transport.writes) == 1
    assert parse_frame(transport.writes[0]).payload == b"\x00\x00\x00\x04a"
    assert framer.frames_sent == 1


def test_send_events_failed_serialize_leaves_no_residue():
    """A failing event writes nothing and does not pollute the next frame."""
    transport = FakeTransport()
    framer = MessageFramer(transport)
    with pytest.raises(RuntimeError):
        framer.send_events(1, [_BrokenEvent()])
    assert transport.writes == []

    framer.send_error(2)
    assert _only_frame(transport).length == 8


# ─── send_error ──────────────────────────────────────────────────────

def test_send_error():
    """Error signal is a single EVENT frame for group -1."""
    transport = FakeTransport()
    MessageFramer(transport).send_error(3)
    frame = _only_frame(transport)
    assert frame.type == MessageType.EVENT
    assert frame.payload == bytes.fromhex("FF FF FF FF 00 00 00 03")


# ─── flush discipline ────────────────────────────────────────────────

def test_back_to_back_frames_do_not_leak():
    """Consecutive verbs produce frames of exactly their own size."""
    transport = FakeTransport()
    framer = MessageFramer(transport)
    framer.send_events(1, [RawEvent(b"\x00" * 10)])
    framer.send_error(5)

    first, second = split_frames(b"".join(transport.writes))
    assert first.length == 14
    assert second.length == 8
    assert len(transport.writes[0]) == HEADER_SIZE + 14
    assert len(transport.writes[1]) == HEADER_SIZE + 8
    assert framer.frames_sent == 2


def test_frame_written_in_single_call():
    """Header and payload reach the transport in one write."""
    transport = FakeTransport(struct.pack(">i", 0))
    MessageFramer(transport).resolve_group_id(1.0, 2.0)
    assert len(transport.writes) == 1
    assert len(transport.writes[0]) == HEADER_SIZE + 8


def test_concurrent_senders_do_not_interleave():
    """Frames from several threads stay whole and are all delivered."""
    transport = FakeTransport()
    framer = MessageFramer(transport)

    def worker(group_id: int) -> None:
        framer.send_events(group_id, [RawEvent(bytes([group_id]) * 32)] * 25)

    threads = [threading.Thread(target=worker, args=(g,)) for g in range(1, 5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    frames = split_frames(b"".join(transport.writes))
    assert len(frames) == 100
    for frame in frames:
        group_id = struct.unpack(">i", frame.payload[:4])[0]
        assert frame.payload[4:] == bytes([group_id]) * 32


def test_resolve_group_id_out_of_range_coordinates():
    """Coordinates too large for float32 are sent as infinity."""
    transport = FakeTransport(struct.pack(">i", 4))
    assert MessageFramer(transport).resolve_group_id(1e39, -1e39) == 4
    assert _only_frame(transport).payload == b"\x7F\x80\x00\x00\xFF\x80\x00\x00"


def test_transport_extends_reader():
    """A transport is a reader that can also write."""
    assert Reader in Transport.__mro__
    assert "write" in Transport.__dict__
