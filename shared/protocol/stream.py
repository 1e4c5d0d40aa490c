from __future__ import annotations

from .errors import ShortReadError


class ByteStream:
    """
    In-memory buffer over one message payload.

    Reads consume from a cursor that starts at 0; writes always append to the
    end of the buffer, independent of the read cursor. Single owner only.
    """

    def __init__(self, data: bytes = b"") -> None:
        self._buffer = bytearray(data)
        self._pos = 0

    def read(self, size: int) -> bytes:
        """Return exactly `size` bytes or raise ShortReadError."""
        if size < 0:
            raise ValueError("size must be non-negative")
        available = len(self._buffer) - self._pos
        if size > available:
            raise ShortReadError(size, available)
        chunk = bytes(self._buffer[self._pos : self._pos + size])
        self._pos += size
        return chunk

    def write(self, data: bytes) -> int:
        self._buffer.extend(data)
        return len(data)

    @property
    def remaining(self) -> int:
        return len(self._buffer) - self._pos

    def to_bytes(self) -> bytes:
        """Whole buffer from position 0; does not move the read cursor."""
        return bytes(self._buffer)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        return f"ByteStream(size={len(self._buffer)}, pos={self._pos})"


__all__ = ["ByteStream"]
