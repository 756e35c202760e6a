"""MCP server entry point for driving a touch client by hand.

Exposes the framer's verbs as tools via the Model Context Protocol using
the official Python MCP SDK with stdio transport. Useful for exercising a
client application without a touch device attached.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .errors import SparshWireError
from .models.event import RawEvent
from .protocol.commands import ERROR_GROUP_ID, MessageType
from .protocol.framer import MessageFramer
from .transport.socket_connection import (
    CLIENT_PORT,
    DEFAULT_HOST,
    SocketConnection,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "sparsh-wire",
    instructions="Send framed gesture, group and event messages to a touch client",
)

# Global connection state
_connection: SocketConnection | None = None
_framer: MessageFramer | None = None


def _get_framer() -> MessageFramer:
    """Get the framer for the active client, raising if not connected."""
    if _framer is None or _connection is None or not _connection.connected:
        raise RuntimeError(
            "No client connected. Use 'accept_client' or 'connect_client' first."
        )
    return _framer


def _attach(conn: SocketConnection) -> dict[str, Any]:
    global _connection, _framer
    _connection = conn
    _framer = MessageFramer(conn)
    return {
        "connected": True,
        "host": conn.peer.host,
        "port": conn.peer.port,
    }


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def accept_client(
    host: str = DEFAULT_HOST,
    port: int = CLIENT_PORT,
    timeout: float | None = 30.0,
) -> dict[str, Any]:
    """Listen for a touch client and accept its connection.

    Args:
        host: Interface to listen on.
        port: Port to listen on (default 5946).
        timeout: Seconds to wait for the client to connect; None waits
            forever. Later replies are awaited without a limit.
    """
    if _connection is not None and _connection.connected:
        return {"connected": True, "message": "Already connected"}

    try:
        return _attach(SocketConnection.accept(host, port, timeout))
    except SparshWireError as e:
        return {"error": str(e)}


@mcp.tool()
def connect_client(host: str = DEFAULT_HOST, port: int = CLIENT_PORT) -> dict[str, Any]:
    """Connect out to a touch client that is already listening.

    Args:
        host: Client host name or address.
        port: Client port.
    """
    if _connection is not None and _connection.connected:
        return {"connected": True, "message": "Already connected"}

    try:
        return _attach(SocketConnection.connect(host, port))
    except SparshWireError as e:
        return {"error": str(e)}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the client."""
    global _connection, _framer
    if _connection is not None:
        _connection.close()
    _connection = None
    _framer = None
    return {"disconnected": True}


# ─── PROTOCOL TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def get_allowed_gestures(group_id: int) -> dict[str, Any]:
    """Ask the client which gestures a group accepts.

    Args:
        group_id: Group to query.
    """
    framer = _get_framer()
    try:
        gestures = framer.query_gestures(group_id)
    except SparshWireError as e:
        logger.error("Gesture query for group %d failed: %s", group_id, e)
        return {"error": str(e)}

    return {
        "group_id": group_id,
        "gestures": [g.to_dict() for g in gestures],
    }


@mcp.tool()
def get_group_id(x: float, y: float) -> dict[str, Any]:
    """Ask the client which group owns a screen location.

    Args:
        x: Horizontal coordinate (normalized 0.0-1.0 by convention).
        y: Vertical coordinate (normalized 0.0-1.0 by convention).
    """
    framer = _get_framer()
    try:
        group_id = framer.resolve_group_id(x, y)
    except SparshWireError as e:
        logger.error("Group lookup at (%s, %s) failed: %s", x, y, e)
        return {"error": str(e)}

    return {"x": x, "y": y, "group_id": group_id}


@mcp.tool()
def send_events(group_id: int, events_hex: list[str]) -> dict[str, Any]:
    """Send pre-serialized events to the client, one frame per event.

    Args:
        group_id: Group the events belong to.
        events_hex: Serialized events as hex strings, in send order.
    """
    try:
        events = [RawEvent.from_hex(text) for text in events_hex]
    except ValueError as e:
        return {"error": f"Invalid event hex: {e}"}

    framer = _get_framer()
    before = framer.frames_sent
    try:
        framer.send_events(group_id, events)
    except SparshWireError as e:
        return {"error": str(e), "sent": framer.frames_sent - before}

    return {"group_id": group_id, "sent": framer.frames_sent - before}


@mcp.tool()
def send_error(error_code: int) -> dict[str, Any]:
    """Send an error signal to the client.

    Args:
        error_code: Application error code carried after group ID -1.
    """
    framer = _get_framer()
    try:
        framer.send_error(error_code)
    except SparshWireError as e:
        return {"error": str(e)}
    return {"sent": True, "error_code": error_code}


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("protocol://message-types")
def resource_message_types() -> str:
    """Message type tags and reserved values used on the wire."""
    return json.dumps({
        "message_types": {t.name: t.value for t in MessageType},
        "error_group_id": ERROR_GROUP_ID,
        "byte_order": "big-endian",
    })


@mcp.resource("protocol://connection/status")
def resource_connection_status() -> str:
    """Connection state and frames sent to the current client."""
    if _connection is None or not _connection.connected or _framer is None:
        return json.dumps({"connected": False})

    return json.dumps({
        "connected": True,
        "host": _connection.peer.host,
        "port": _connection.peer.port,
        "frames_sent": _framer.frames_sent,
    })


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
