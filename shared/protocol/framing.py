from __future__ import annotations

import json
from typing import BinaryIO, Iterator, Optional, Tuple, Union

from .constants import DEFAULT_CHUNK_SIZE, ENCODING, FRAME_DELIMITER, MAX_RPC_LINE_SIZE, STOP_SIGNAL
from .errors import DecodeError, EncodeError, FramingError


def _as_bytes(payload: Union[bytes, bytearray, str]) -> bytes:
    # Frame lengths count bytes, so text is encoded before measuring.
    if isinstance(payload, str):
        return payload.encode(ENCODING)
    return bytes(payload)


def encode_frame(payload: Union[bytes, str]) -> bytes:
    """Encode payload as `<decimal byte length>\\n<payload>`."""
    data = _as_bytes(payload)
    return str(len(data)).encode("ascii") + FRAME_DELIMITER + data


def parse_frame_header(line: bytes) -> int:
    """Parse a header line (with or without its delimiter) into a payload length."""
    text = line.rstrip(FRAME_DELIMITER).rstrip(b"\r")
    if not text.isdigit():
        raise FramingError(f"Invalid frame header {bytes(line[:32])!r}")
    return int(text)


def decode_frame(data: bytes) -> Tuple[bytes, bytes]:
    """Split one frame off the front of `data`, returning (payload, rest)."""
    header_end = data.find(FRAME_DELIMITER)
    if header_end < 0:
        raise FramingError("Frame header is not terminated")
    length = parse_frame_header(data[:header_end])
    start = header_end + len(FRAME_DELIMITER)
    payload = data[start : start + length]
    if len(payload) != length:
        raise FramingError(f"Frame truncated: declared {length} bytes, got {len(payload)}")
    return payload, data[start + length :]


def iter_chunks(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    for offset in range(0, len(data), chunk_size):
        yield data[offset : offset + chunk_size]


def read_frame(reader: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Optional[bytes]:
    """
    Read one frame from a blocking binary stream.

    Returns None when input is closed before a header, or when the header line
    is empty or reads `exit`. The payload is accumulated over as many reads as
    the stream needs; each read asks for at most `chunk_size` bytes.
    """
    line = reader.readline()
    if not line or line.rstrip(b"\r\n") in (b"", STOP_SIGNAL):
        return None
    if not line.endswith(FRAME_DELIMITER):
        raise FramingError(f"Input closed inside frame header {bytes(line[:32])!r}")
    remaining = parse_frame_header(line)
    parts = []
    while remaining > 0:
        data = reader.read(min(remaining, chunk_size))
        if not data:
            raise FramingError(f"Input closed with {remaining} frame bytes outstanding")
        parts.append(data)
        remaining -= len(data)
    return b"".join(parts)


def write_frame(writer: BinaryIO, payload: Union[bytes, str], chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Write one frame; chunking only bounds write sizes and never changes the byte count."""
    data = _as_bytes(payload)
    writer.write(str(len(data)).encode("ascii") + FRAME_DELIMITER)
    for chunk in iter_chunks(data, chunk_size):
        writer.write(chunk)
    writer.flush()
    return len(data)


def encode_msg(msg: dict) -> bytes:
    """Encode message dict into bytes (JSON + delimiter)."""
    try:
        json_str = json.dumps(msg, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"Encode failed: {exc}") from exc

    data = json_str.encode(ENCODING)
    if len(data) > MAX_RPC_LINE_SIZE:
        raise EncodeError("Payload too large for RPC channel")
    return data + FRAME_DELIMITER


def decode_msg(data: bytes) -> dict:
    """Decode bytes into dictionary, stripping delimiter."""
    try:
        json_str = data.rstrip(FRAME_DELIMITER).decode(ENCODING)
        decoded = json.loads(json_str)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(f"Decode failed: {exc}") from exc
    if not isinstance(decoded, dict):
        raise DecodeError(f"Expected a JSON object, got {type(decoded).__name__}")
    return decoded


__all__ = [
    "encode_frame",
    "decode_frame",
    "parse_frame_header",
    "iter_chunks",
    "read_frame",
    "write_frame",
    "encode_msg",
    "decode_msg",
]
