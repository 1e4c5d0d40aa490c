from __future__ import annotations

import contextlib
import itertools
import logging
import socket
from typing import Any, BinaryIO, Optional

from pydantic import ValidationError

from client.config import CLIENT_CONFIG, ConfigError
from shared.protocol import framing, validator
from shared.protocol.errors import DecodeError, EncodeError, RPCMismatchError, RPCRemoteError, TransportError
from shared.protocol.messages import RPCRequest, RPCResponse
from shared.utils import split_address

logger = logging.getLogger(__name__)


class RPCClient:
    """
    Synchronous JSON line RPC over one lazily opened TCP socket.

    Each call writes one request line and blocks for exactly one reply line.
    The socket is not safe to share between concurrent callers.
    """

    def __init__(self, address: Optional[str] = None, max_line_size: Optional[int] = None) -> None:
        self.address: str = address or CLIENT_CONFIG["rpc_address"]
        try:
            self.host, self.port = split_address(self.address)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        self.max_line_size: int = int(max_line_size or CLIENT_CONFIG["max_line_size"])
        self._socket: Optional[socket.socket] = None
        self._reader: Optional[BinaryIO] = None
        self._ids = itertools.count(1)

    def __enter__(self) -> "RPCClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> socket.socket:
        if self._socket is not None:
            return self._socket
        try:
            sock = socket.create_connection((self.host, self.port))
        except OSError as exc:
            raise TransportError(
                f"Could not open socket {self.address}: {exc.errno}: {exc.strerror or exc}"
            ) from exc
        self._socket = sock
        self._reader = sock.makefile("rb")
        logger.info("Connected to %s", self.address)
        return sock

    def send(self, method: str, arg: Any = None) -> RPCResponse:
        """Send one call and return the decoded reply, including any peer-reported error."""
        try:
            request = RPCRequest(id=next(self._ids), method=method, params=[arg])
        except ValidationError as exc:
            raise EncodeError(f"RPC request validation failed: {exc}") from exc
        message = request.model_dump()
        validator.validate_msg(message)
        payload = framing.encode_msg(message)

        sock = self.connect()
        assert self._reader is not None
        try:
            sock.sendall(payload)
            line = self._reader.readline(self.max_line_size + 1)
        except OSError as exc:
            self._abort()
            raise TransportError(f"RPC {method} on {self.address} failed: {exc}") from exc
        if not line:
            self._abort()
            raise TransportError(f"Could not read from socket {self.address}: connection closed")
        if len(line) > self.max_line_size:
            self._abort()
            raise TransportError(f"Reply from {self.address} exceeds {self.max_line_size} bytes")
        logger.debug("RPC %s id=%s answered with %s bytes", method, request.id, len(line))

        try:
            raw = framing.decode_msg(line)
            validator.validate_reply(raw)
            response = RPCResponse.from_dict(raw)
        except DecodeError:
            self._abort()
            raise
        if response.id != request.id:
            self._abort()
            raise RPCMismatchError(request.id, response.id)
        return response

    def call(self, method: str, arg: Any = None) -> Any:
        """Like send(), but returns only the result and raises on a peer-reported error."""
        response = self.send(method, arg)
        if response.error is not None:
            raise RPCRemoteError(method, response.error)
        return response.result

    def close(self) -> None:
        if self._socket is None:
            return
        sock, reader = self._socket, self._reader
        self._socket = None
        self._reader = None
        try:
            if reader is not None:
                reader.close()
            sock.close()
        except OSError as exc:
            raise TransportError(f"Could not close socket {self.address}: {exc}") from exc
        logger.info("RPC connection to %s closed", self.address)

    def _abort(self) -> None:
        # The caller raises the original failure.
        with contextlib.suppress(TransportError):
            self.close()


__all__ = ["RPCClient"]
