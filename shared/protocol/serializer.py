"""
Binary field codec for messages carried inside frames.

The wire has two base types, both untagged:

* uint64 - 8 bytes, little endian, unsigned.
* bytes  - uint64 byte count followed by the raw bytes. Text is UTF-8 bytes.

Lists are a uint64 element count followed by the elements; maps are a uint64
entry count followed by (key, value) pairs in the encoder's iteration order.
Field order is fixed per message type and must match on both ends.
"""

from __future__ import annotations

import struct
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar, Union

from .commands import MsgType
from .constants import ENCODING, UINT64_MAX, UINT64_SIZE
from .errors import DecodeError, EncodeError
from .messages import BaseMsg, File, HTTPRequest, HTTPResponse, JobRequest, JobResponse, message_class
from .stream import ByteStream

T = TypeVar("T")
Parser = Callable[[ByteStream], T]
Writer = Callable[[ByteStream, T], None]

UINT64 = struct.Struct("<Q")


def write_uint64(stream: ByteStream, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"uint64 expects int, got {type(value).__name__}")
    if not 0 <= value <= UINT64_MAX:
        raise EncodeError(f"{value} does not fit in uint64")
    stream.write(UINT64.pack(value))


def parse_uint64(stream: ByteStream) -> int:
    (value,) = UINT64.unpack(stream.read(UINT64_SIZE))
    return value


def write_bytes(stream: ByteStream, value: Union[bytes, bytearray]) -> None:
    write_uint64(stream, len(value))
    stream.write(bytes(value))


def parse_bytes(stream: ByteStream) -> bytes:
    size = parse_uint64(stream)
    if size == 0:
        return b""
    return stream.read(size)


def write_string(stream: ByteStream, value: str) -> None:
    if not isinstance(value, str):
        raise EncodeError(f"string expects str, got {type(value).__name__}")
    write_bytes(stream, value.encode(ENCODING))


def parse_string(stream: ByteStream) -> str:
    raw = parse_bytes(stream)
    try:
        return raw.decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise DecodeError(f"invalid UTF-8: {exc.reason}") from exc


def write_list(stream: ByteStream, items: Iterable[T], write_item: Writer) -> None:
    items = list(items)
    write_uint64(stream, len(items))
    for item in items:
        write_item(stream, item)


def parse_list(stream: ByteStream, parse_item: Parser) -> List[Any]:
    count = parse_uint64(stream)
    result: List[Any] = []
    for index in range(count):
        result.append(_field(stream, f"[{index}]", parse_item))
    return result


def write_map(stream: ByteStream, mapping: Mapping[str, T], write_value: Writer) -> None:
    write_uint64(stream, len(mapping))
    for key, value in mapping.items():
        write_string(stream, key)
        write_value(stream, value)


def parse_map(stream: ByteStream, parse_value: Parser) -> Dict[str, Any]:
    count = parse_uint64(stream)
    result: Dict[str, Any] = {}
    for index in range(count):
        key = _field(stream, f"[#{index}]", parse_string)
        if key in result:
            raise DecodeError(f"duplicate key {key!r}", field=f"[{key}]")
        result[key] = _field(stream, f"[{key}]", parse_value)
    return result


write_string_map = partial(write_map, write_value=write_string)
parse_string_map = partial(parse_map, parse_value=parse_string)


def _join(outer: str, inner: Optional[str]) -> str:
    if not inner:
        return outer
    if inner.startswith("["):
        return f"{outer}{inner}"
    return f"{outer}.{inner}"


def _field(stream: ByteStream, name: str, parser: Parser) -> Any:
    """Run one parser, re-raising any decode failure with the field path prefixed."""
    try:
        return parser(stream)
    except DecodeError as exc:
        raise DecodeError(exc.reason, field=_join(name, exc.field)) from exc


class Serializer:
    """Reads and writes the structured messages field by field."""

    def parse_file(self, stream: ByteStream) -> File:
        filename = _field(stream, "filename", parse_string)
        tmp_path = _field(stream, "tmpPath", parse_string)
        size = _field(stream, "size", parse_uint64)
        return File(filename=filename, tmp_path=tmp_path, size=size)

    def write_file(self, stream: ByteStream, file: File) -> None:
        write_string(stream, file.filename)
        write_string(stream, file.tmp_path)
        write_uint64(stream, file.size)

    def parse_http_request(self, stream: ByteStream) -> HTTPRequest:
        method = _field(stream, "method", parse_string)
        url = _field(stream, "url", parse_string)
        headers = _field(stream, "headers", parse_string_map)
        body = _field(stream, "body", parse_bytes)
        files = _field(stream, "files", partial(parse_map, parse_value=self.parse_file))
        form = _field(stream, "form", parse_string_map)
        return HTTPRequest(method=method, url=url, headers=headers, body=body, files=files, form=form)

    def write_http_request(self, stream: ByteStream, request: HTTPRequest) -> None:
        write_string(stream, request.method)
        write_string(stream, request.url)
        write_string_map(stream, request.headers)
        write_bytes(stream, request.body)
        write_map(stream, request.files, self.write_file)
        write_string_map(stream, request.form)

    def parse_http_response(self, stream: ByteStream) -> HTTPResponse:
        status_code = _field(stream, "statusCode", parse_uint64)
        headers = _field(stream, "headers", parse_string_map)
        body = _field(stream, "body", parse_bytes)
        return HTTPResponse(status_code=status_code, headers=headers, body=body)

    def write_http_response(self, stream: ByteStream, response: HTTPResponse) -> None:
        write_uint64(stream, response.status_code)
        write_string_map(stream, response.headers)
        write_bytes(stream, response.body)

    def parse_job_request(self, stream: ByteStream) -> JobRequest:
        name = _field(stream, "name", parse_string)
        payload = _field(stream, "payload", parse_bytes)
        timeout = _field(stream, "timeout", parse_uint64)
        return JobRequest(name=name, payload=payload, timeout=timeout)

    def write_job_request(self, stream: ByteStream, request: JobRequest) -> None:
        write_string(stream, request.name)
        write_bytes(stream, request.payload)
        write_uint64(stream, request.timeout)

    def parse_job_response(self, stream: ByteStream) -> JobResponse:
        payload = _field(stream, "payload", parse_bytes)
        return JobResponse(payload=payload)

    def write_job_response(self, stream: ByteStream, response: JobResponse) -> None:
        write_bytes(stream, response.payload)

    def _codec(self, msg_type: Any):
        cls = message_class(msg_type)
        return {
            MsgType.HTTP_REQUEST: (self.parse_http_request, self.write_http_request),
            MsgType.HTTP_RESPONSE: (self.parse_http_response, self.write_http_response),
            MsgType.HTTP_FILE: (self.parse_file, self.write_file),
            MsgType.JOB_REQUEST: (self.parse_job_request, self.write_job_request),
            MsgType.JOB_RESPONSE: (self.parse_job_response, self.write_job_response),
        }[cls.msg_type]

    def encode(self, message: BaseMsg) -> bytes:
        """Encode a whole message into a fresh payload."""
        if not isinstance(message, BaseMsg) or message.msg_type is None:
            raise EncodeError(f"Cannot encode {type(message).__name__}")
        _, write = self._codec(message.msg_type)
        stream = ByteStream()
        write(stream, message)
        return stream.to_bytes()

    def decode(self, msg_type: Union[str, MsgType], payload: bytes) -> BaseMsg:
        """Decode a whole payload; bytes left over after the last field are an error."""
        parse, _ = self._codec(msg_type)
        stream = ByteStream(payload)
        message = parse(stream)
        if stream.remaining:
            raise DecodeError(f"{stream.remaining} unexpected bytes after message", field="<trailing>")
        return message


__all__ = [
    "Serializer",
    "write_uint64",
    "parse_uint64",
    "write_bytes",
    "parse_bytes",
    "write_string",
    "parse_string",
    "write_list",
    "parse_list",
    "write_map",
    "parse_map",
    "write_string_map",
    "parse_string_map",
]
