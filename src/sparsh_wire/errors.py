"""Exception types raised by the framing layer and its transport."""

from __future__ import annotations


class SparshWireError(Exception):
    """Base class for all errors raised by this package."""


class TransportError(SparshWireError, ConnectionError):
    """The underlying stream failed, closed, or was never opened.

    A frame may have been partially written when this is raised; the
    connection should be considered unusable afterwards.
    """


class ProtocolDecodeError(SparshWireError, ValueError):
    """A reply from the client could not be decoded."""


class TruncatedStreamError(ProtocolDecodeError):
    """The stream ended before a field was completely read."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Stream ended after {received} of {expected} expected bytes"
        )
        self.expected = expected
        self.received = received
