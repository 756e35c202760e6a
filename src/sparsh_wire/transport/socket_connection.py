"""Blocking TCP connection to a touch client.

The touch server listens on ``CLIENT_PORT``; a client application connects
and then answers the server's gesture and group queries. ``SocketConnection``
wraps one such connected socket and gives the framer ordered, blocking
``write`` and ``read_exactly`` calls.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass

from ..errors import TransportError, TruncatedStreamError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
CLIENT_PORT = 5946
DEFAULT_TIMEOUT_S: float | None = None
ACCEPT_BACKLOG = 1


@dataclass
class PeerInfo:
    """Address information for the connected client."""

    host: str = ""
    port: int = 0


class SocketConnection:
    """Manages one stream connection to a touch client.

    Usage::

        conn = SocketConnection.accept(port=CLIENT_PORT)
        conn.write(frame_bytes)
        reply = conn.read_exactly(4)
        conn.close()
    """

    def __init__(self, sock: socket.socket | None = None) -> None:
        self._sock = sock
        self._peer = PeerInfo()
        if sock is not None:
            self._peer = self._peer_of(sock)

    @classmethod
    def accept(
        cls,
        host: str = DEFAULT_HOST,
        port: int = CLIENT_PORT,
        timeout: float | None = DEFAULT_TIMEOUT_S,
    ) -> SocketConnection:
        """Listen on ``(host, port)`` and wait for one client to connect.

        ``timeout`` bounds only the wait for the client; the accepted
        connection blocks on reads and writes.

        Raises:
            TransportError: If binding or accepting fails.
        """
        try:
            with socket.create_server((host, port), backlog=ACCEPT_BACKLOG) as server:
                server.settimeout(timeout)
                logger.info("Waiting for client on %s:%d", host, port)
                sock, _ = server.accept()
        except OSError as e:
            raise TransportError(
                f"Could not accept client on {host}:{port}: {e}"
            ) from e

        sock.settimeout(None)
        conn = cls(sock)
        logger.info("Client connected from %s:%d", conn.peer.host, conn.peer.port)
        return conn

    @classmethod
    def connect(
        cls,
        host: str = DEFAULT_HOST,
        port: int = CLIENT_PORT,
        timeout: float | None = DEFAULT_TIMEOUT_S,
    ) -> SocketConnection:
        """Open an outbound connection to ``(host, port)``.

        ``timeout`` bounds only connection setup; the connection itself
        blocks on reads and writes.
        """
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise TransportError(f"Could not connect to {host}:{port}: {e}") from e

        sock.settimeout(None)
        conn = cls(sock)
        logger.info("Connected to %s:%d", conn.peer.host, conn.peer.port)
        return conn

    @staticmethod
    def _peer_of(sock: socket.socket) -> PeerInfo:
        try:
            address = sock.getpeername()
        except OSError:
            return PeerInfo()
        if isinstance(address, tuple) and len(address) >= 2:
            return PeerInfo(host=str(address[0]), port=int(address[1]))
        return PeerInfo(host=str(address))

    @property
    def connected(self) -> bool:
        return self._sock is not None

    @property
    def peer(self) -> PeerInfo:
        return self._peer

    def close(self) -> None:
        """Close the connection."""
        if self._sock is None:
            return

        try:
            self._sock.close()
        except OSError as e:
            logger.warning("Error closing connection: %s", e)
        finally:
            self._sock = None
            logger.info("Disconnected")

    def write(self, data: bytes) -> None:
        """Write ``data`` in full.

        Raises:
            TransportError: If not connected or the write fails.
        """
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    def read_exactly(self, n: int) -> bytes:
        """Read exactly ``n`` bytes, blocking until they arrive.

        Raises:
            TransportError: If not connected or the read fails.
            TruncatedStreamError: If the peer closes the stream first.
        """
        sock = self._require_socket()
        buf = bytearray(n)
        view = memoryview(buf)
        got = 0
        while got < n:
            try:
                k = sock.recv_into(view[got:])
            except OSError as e:
                raise TransportError(f"Read failed: {e}") from e
            if k == 0:
                raise TruncatedStreamError(expected=n, received=got)
            got += k
        return bytes(buf)

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("Not connected to client")
        return self._sock

    def __enter__(self) -> SocketConnection:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
