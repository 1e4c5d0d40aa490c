from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Process exit reasons reported by the worker to its supervisor."""

    CLEAN = 0
    HANDLER_FAILED = 1
    FRAMING_FAILED = 2
    DECODE_FAILED = 3
    TRANSPORT_FAILED = 4


class ErrorCode(IntEnum):
    """Domain specific error codes."""

    TRANSPORT = 1001
    FRAMING = 1002
    DECODE = 1003
    ENCODE = 1004
    APPLICATION = 1005
    RPC_REMOTE = 1006
    RPC_MISMATCH = 1007


class ProtocolError(Exception):
    """Structured protocol exception carrying code + message."""

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{message} (code={code.name})")


class TransportError(ProtocolError):
    """Socket or pipe could not be opened, read, written or closed."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.TRANSPORT, message)


class FramingError(ProtocolError):
    """A frame header is malformed or its payload ended early."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.FRAMING, message)


class DecodeError(ProtocolError):
    """A structured field could not be parsed from the available bytes."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        self.reason = message
        if field:
            message = f"Could not decode field {field}: {message}"
        super().__init__(ErrorCode.DECODE, message)


class ShortReadError(DecodeError):
    """Fewer bytes remain in a stream than a read asked for."""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(f"wanted {requested} bytes, {available} available")


class EncodeError(ProtocolError):
    """A value cannot be represented on the wire."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.ENCODE, message)


class ApplicationError(ProtocolError):
    """Raised by handler logic, or when a handler breaks its contract."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.APPLICATION, message)


class RPCRemoteError(ProtocolError):
    """The RPC peer answered with an ``error`` field."""

    def __init__(self, method: str, error: str) -> None:
        self.method = method
        self.error = error
        super().__init__(ErrorCode.RPC_REMOTE, f"{method} failed: {error}")


class RPCMismatchError(ProtocolError):
    """The RPC reply id does not belong to the request just sent."""

    def __init__(self, expected: int, received: object) -> None:
        self.expected = expected
        self.received = received
        super().__init__(ErrorCode.RPC_MISMATCH, f"Reply id {received!r} does not match request id {expected}")


def exit_code_for(exc: BaseException, from_handler: bool = False) -> ExitCode:
    """
    Map a failure onto a worker exit reason.

    Anything a handler raises other than a decode error counts as an
    application failure, including transport errors it let escape.
    """
    if isinstance(exc, DecodeError):
        return ExitCode.DECODE_FAILED
    if from_handler:
        return ExitCode.HANDLER_FAILED
    if isinstance(exc, FramingError):
        return ExitCode.FRAMING_FAILED
    if isinstance(exc, (TransportError, OSError, ValueError)):
        return ExitCode.TRANSPORT_FAILED
    return ExitCode.HANDLER_FAILED


__all__ = [
    "ExitCode",
    "ErrorCode",
    "ProtocolError",
    "TransportError",
    "FramingError",
    "DecodeError",
    "ShortReadError",
    "EncodeError",
    "ApplicationError",
    "RPCRemoteError",
    "RPCMismatchError",
    "exit_code_for",
]
