from __future__ import annotations

import logging
import sys
import traceback
from collections.abc import Callable
from enum import Enum
from typing import BinaryIO, Optional, Union

from shared.protocol import framing
from shared.protocol.constants import DEFAULT_CHUNK_SIZE, ENCODING, READY_SIGNAL
from shared.protocol.errors import ApplicationError, ExitCode, FramingError, exit_code_for
from shared.utils import indent_context

logger = logging.getLogger(__name__)

Handler = Callable[[bytes], Union[bytes, str]]


class DispatcherState(str, Enum):
    AWAITING_FRAME = "awaiting_frame"
    TERMINATED = "terminated"


class Dispatcher:
    """
    Blocking stdio message loop of a worker process.

    Reads length-prefixed frames from `stdin`, passes each payload to the
    handler and frames the handler's result back onto `stdout`. One frame is
    in flight at a time.
    """

    def __init__(
        self,
        stdin: Optional[BinaryIO] = None,
        stdout: Optional[BinaryIO] = None,
        stderr: Optional[BinaryIO] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        on_error: str = "abort",
    ) -> None:
        if on_error not in ("abort", "skip"):
            raise ValueError(f"on_error must be 'abort' or 'skip', got {on_error!r}")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._in: BinaryIO = stdin if stdin is not None else sys.stdin.buffer
        self._out: BinaryIO = stdout if stdout is not None else sys.stdout.buffer
        self._err: BinaryIO = stderr if stderr is not None else sys.stderr.buffer
        self.chunk_size = chunk_size
        self.on_error = on_error
        self.state = DispatcherState.AWAITING_FRAME
        self.frames_handled = 0
        self.frames_failed = 0
        self.exit_code: Optional[ExitCode] = None

    def __enter__(self) -> "Dispatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def run(self, handler: Handler) -> ExitCode:
        """Serve frames until input closes or a failure ends the loop."""
        try:
            self._out.write(READY_SIGNAL)
            self._out.flush()
            logger.debug("Worker ready, awaiting frames")
            while True:
                payload = framing.read_frame(self._in, self.chunk_size)
                if payload is None:
                    logger.info(
                        "Input closed after %s frames (%s failed), shutting down",
                        self.frames_handled,
                        self.frames_failed,
                    )
                    return self._terminate(ExitCode.CLEAN)
                logger.debug("Received frame of %s bytes", len(payload))
                try:
                    response = self._invoke(handler, payload)
                except Exception as exc:
                    self.error(str(exc), traceback.format_exc())
                    if self.on_error != "skip":
                        return self._terminate(exit_code_for(exc, from_handler=True))
                    logger.warning("Handler failed, answering with an empty frame: %s", exc)
                    self.send(b"")
                    self.frames_failed += 1
                    continue
                self.send(response)
                self.frames_handled += 1
        except (FramingError, OSError, ValueError) as exc:
            self.error(str(exc), traceback.format_exc())
            return self._terminate(exit_code_for(exc))

    def send(self, data: bytes) -> None:
        written = framing.write_frame(self._out, data, self.chunk_size)
        logger.debug("Sent frame of %s bytes", written)

    def error(self, message: str, context: Optional[str] = None) -> None:
        """Report a failure on the error stream in the supervisor's log format."""
        logger.debug("Reporting worker error: %s", message)
        text = f"\033[1;31mError from worker: {message}\033[0m\n"
        if context is not None:
            text += f"\033[1mContext:\033[0m {indent_context(context)}\n"
        self._err.write(text.encode(ENCODING, errors="replace"))
        self._err.flush()

    def close(self) -> None:
        """Flush and release the standard handles."""
        for handle in (self._out, self._err):
            try:
                handle.flush()
            except (OSError, ValueError):
                logger.debug("Handle already closed: %r", handle)
        self.state = DispatcherState.TERMINATED

    def _invoke(self, handler: Handler, payload: bytes) -> bytes:
        response = handler(payload)
        if isinstance(response, str):
            return response.encode(ENCODING)
        if isinstance(response, (bytes, bytearray, memoryview)):
            return bytes(response)
        raise ApplicationError(f"Handler returned {type(response).__name__}, expected bytes")

    def _terminate(self, code: ExitCode) -> ExitCode:
        self.state = DispatcherState.TERMINATED
        self.exit_code = code
        return code


__all__ = ["Dispatcher", "DispatcherState", "Handler"]
