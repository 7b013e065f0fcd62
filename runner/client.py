"""Unix domain socket client for the runner backend.

Connects to the request socket, sends one framed request and reads the
reply until the server closes the connection.
"""
from __future__ import annotations

import json
import socket
from pathlib import Path
from typing import Any, Optional

from .server import ACTIVATION_COMMAND, QUERY_COMMAND, encode_frame

SOCKET_TIMEOUT = 5  # seconds

# Replies larger than this are treated as broken
MAX_RESPONSE_SIZE = 10 * 1024 * 1024


class BackendUnavailable(Exception):
    """Raised when the runner socket is not reachable."""
    pass


def request(command: str, payload: dict, socket_path: Path, timeout: float = SOCKET_TIMEOUT) -> Optional[Any]:
    """Send a request and return the decoded reply (None when the server sent nothing)."""
    frame = encode_frame(command, json.dumps(payload).encode("utf-8"))

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.settimeout(timeout)
        sock.connect(str(socket_path))
    except OSError as e:
        sock.close()
        raise BackendUnavailable(f"Cannot connect to {socket_path}: {e}") from e

    try:
        sock.sendall(frame)
        # The server reads a single frame; signal that nothing else follows
        sock.shutdown(socket.SHUT_WR)

        buf = b""
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            buf += chunk
            if len(buf) > MAX_RESPONSE_SIZE:
                raise RuntimeError(f"Response exceeded {MAX_RESPONSE_SIZE} bytes")
    finally:
        sock.close()

    if not buf:
        return None
    return json.loads(buf.decode("utf-8"))


def query(text: str, providers: list[str], socket_path: Path, autoselect: bool = False,
          timeout: float = SOCKET_TIMEOUT) -> list:
    """Run a query; returns the list of result objects."""
    result = request(QUERY_COMMAND, {
        "autoselect": autoselect,
        "providers": providers,
        "query": text,
    }, socket_path, timeout)
    return result or []


def activate(identifier: str, provider: str, socket_path: Path,
             secondary: bool = False, terminal: bool = False) -> None:
    request(ACTIVATION_COMMAND, {
        "identifier": identifier,
        "provider": provider,
        "type": 1 if secondary else 0,
        "terminal": terminal,
    }, socket_path)
