"""Request server on a Unix domain socket.

Protocol: one request and at most one response per connection.
  Request:  20 byte NUL padded ASCII command, then a JSON body (max 5120 bytes total)
  Response: JSON array of result items (query only)

Unknown commands and malformed bodies get no response; the connection is
simply closed.
"""
from __future__ import annotations

import json
import os
import socket
import threading
import time
from pathlib import Path
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from .activation import ActivationHandler
from .dispatcher import QueryDispatcher
from .errors import ProtocolError
from .logging_utils import get_logger, log_request
from .models import ActivationRequest, QueryRequest

logger = get_logger("server")

MAX_REQUEST_SIZE = 5120
COMMAND_SIZE = 20

QUERY_COMMAND = "query"
ACTIVATION_COMMAND = "activation"


def encode_frame(command: str, body: bytes) -> bytes:
    raw = command.encode("ascii")
    if len(raw) > COMMAND_SIZE:
        raise ValueError(f"command '{command}' longer than {COMMAND_SIZE} bytes")
    frame = raw.ljust(COMMAND_SIZE, b"\x00") + body
    if len(frame) > MAX_REQUEST_SIZE:
        raise ValueError(f"request of {len(frame)} bytes exceeds {MAX_REQUEST_SIZE}")
    return frame


def decode_frame(buf: bytes) -> tuple[str, bytes]:
    """Split a raw request into its command name and body."""
    try:
        command = buf[:COMMAND_SIZE].rstrip(b"\x00").decode("ascii")
    except UnicodeDecodeError as e:
        raise ProtocolError("", f"command is not ASCII: {e}") from e
    return command, buf[COMMAND_SIZE:]


Handler = Callable[[bytes], Optional[bytes]]


class RequestServer:
    def __init__(self,
                 dispatcher: QueryDispatcher,
                 activation: ActivationHandler,
                 socket_path: Path):
        self.dispatcher = dispatcher
        self.activation = activation
        self.socket_path = Path(socket_path)
        self.routes: Dict[str, Handler] = {
            QUERY_COMMAND: self._handle_query,
            ACTIVATION_COMMAND: self._handle_activation,
        }
        self._listener: Optional[socket.socket] = None
        self._stopping = threading.Event()

    # ── per connection ────────────────────────────────────────

    def handle_connection(self, conn: socket.socket) -> None:
        """Serve exactly one request on ``conn`` and close it."""
        try:
            buf = conn.recv(MAX_REQUEST_SIZE)
            if not buf:
                return

            command, body = decode_frame(buf)
            handler = self.routes.get(command)
            if handler is None:
                logger.info(f"Unknown command '{command}' received, closing")
                return

            response = handler(body)
            if response is not None:
                conn.sendall(response)
                logger.debug("Response sent")
        except ProtocolError as e:
            logger.error(f"Dropping malformed request: {e}")
        except OSError as e:
            logger.error(f"Connection error: {e}")
        finally:
            conn.close()

    def _handle_query(self, body: bytes) -> bytes:
        start_time = time.time()
        try:
            request = QueryRequest.model_validate_json(body)
        except ValidationError as e:
            raise ProtocolError(QUERY_COMMAND, str(e)) from e

        items = self.dispatcher.dispatch(request)
        payload = json.dumps([item.model_dump() for item in items]).encode("utf-8")

        log_request(logger, QUERY_COMMAND, (time.time() - start_time) * 1000, True,
                    query=request.query, providers=request.providers, result_count=len(items))
        return payload

    def _handle_activation(self, body: bytes) -> None:
        start_time = time.time()
        try:
            request = ActivationRequest.model_validate_json(body)
        except ValidationError as e:
            raise ProtocolError(ACTIVATION_COMMAND, str(e)) from e

        spec = self.activation.activate(request)
        log_request(logger, ACTIVATION_COMMAND, (time.time() - start_time) * 1000, spec is not None,
                    identifier=request.identifier, providers=[request.provider],
                    error=None if spec is not None else "nothing to launch")
        return None

    # ── listener ──────────────────────────────────────────────

    def bind(self) -> socket.socket:
        """Replace any stale socket file and listen. Failure here is fatal."""
        if self.socket_path.exists() or self.socket_path.is_symlink():
            os.unlink(self.socket_path)
        srv = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            srv.bind(str(self.socket_path))
            srv.listen(16)
        except OSError:
            srv.close()
            raise
        srv.settimeout(1.0)
        self._listener = srv
        logger.info(f"Listening on {self.socket_path}")
        return srv

    def serve_forever(self) -> None:
        srv = self._listener or self.bind()
        try:
            while not self._stopping.is_set():
                try:
                    conn, _ = srv.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stopping.is_set():
                        break
                    logger.error(f"Error accepting connection: {e}")
                    continue

                logger.debug("New connection")
                conn.settimeout(None)
                t = threading.Thread(target=self.handle_connection, args=(conn,), daemon=True)
                t.start()
        finally:
            self._close()

    def serve_in_background(self) -> threading.Thread:
        if self._listener is None:
            self.bind()
        t = threading.Thread(target=self.serve_forever, name="runner-accept", daemon=True)
        t.start()
        return t

    def shutdown(self) -> None:
        self._stopping.set()
        self._close()

    def _close(self) -> None:
        if self._listener is not None:
            try:
                self._listener.close()
            except OSError:
                pass
            self._listener = None
        try:
            if self.socket_path.exists():
                os.unlink(self.socket_path)
        except OSError:
            pass
