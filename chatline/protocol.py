"""Length-prefixed string framing used between chat clients and the server.

Every string travels as a 4-byte big-endian length followed by that many
bytes of UTF-8 text.
"""

from __future__ import annotations

import socket
import struct

PORT = 9001
BUFFER_SIZE = 1024

_LENGTH = struct.Struct("!I")


class ConnectionClosed(ConnectionError):
    """The peer closed the connection before a full frame arrived."""


def send_str(sock: socket.socket, text: str) -> None:
    """Send ``text`` as one length-prefixed frame."""
    data = text.encode("utf-8")
    sock.sendall(_LENGTH.pack(len(data)) + data)


def recv_exact(sock: socket.socket, size: int) -> bytes:
    """Read exactly ``size`` bytes, raising ConnectionClosed on end of stream."""
    received = bytearray()
    while len(received) < size:
        chunk = sock.recv(size - len(received))
        if not chunk:
            raise ConnectionClosed(
                f"connection closed after {len(received)} of {size} bytes"
            )
        received.extend(chunk)
    return bytes(received)


def recv_str(sock: socket.socket) -> str:
    """Receive one length-prefixed frame and return it as text."""
    (length,) = _LENGTH.unpack(recv_exact(sock, _LENGTH.size))
    return recv_exact(sock, length).decode("utf-8", errors="replace")