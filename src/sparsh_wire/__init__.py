"""Binary framing protocol between a touch-input server and its client."""

from .errors import (
    ProtocolDecodeError,
    SparshWireError,
    TransportError,
    TruncatedStreamError,
)
from .models import Event, GestureClassName, GestureDescriptor, GestureID, RawEvent
from .protocol import MessageFramer, MessageType
from .transport.socket_connection import SocketConnection

__version__ = "0.1.0"
