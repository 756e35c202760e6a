"""Stream transports for talking to a touch client."""

from .socket_connection import SocketConnection
