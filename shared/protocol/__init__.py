"""
Shared protocol package: stdio frame codec, binary field codec, message models,
and the JSON line helpers used by the RPC client.
"""

from .commands import MsgType, is_msg_type, msg_types_in_group, normalize_msg_type
from .constants import DEFAULT_CHUNK_SIZE, ENCODING, FRAME_DELIMITER, READY_SIGNAL
from .errors import (
    ApplicationError,
    DecodeError,
    EncodeError,
    ErrorCode,
    ExitCode,
    FramingError,
    ProtocolError,
    RPCMismatchError,
    RPCRemoteError,
    ShortReadError,
    TransportError,
    exit_code_for,
)
from .framing import decode_frame, decode_msg, encode_frame, encode_msg, read_frame, write_frame
from .messages import (
    BaseMsg,
    File,
    HTTPRequest,
    HTTPResponse,
    JobRequest,
    JobResponse,
    RPCRequest,
    RPCResponse,
)
from .serializer import Serializer
from .stream import ByteStream
from .validator import load_schema, validate_msg, validate_reply

__all__ = [
    "MsgType",
    "is_msg_type",
    "msg_types_in_group",
    "normalize_msg_type",
    "DEFAULT_CHUNK_SIZE",
    "ENCODING",
    "FRAME_DELIMITER",
    "READY_SIGNAL",
    "ApplicationError",
    "DecodeError",
    "EncodeError",
    "ErrorCode",
    "ExitCode",
    "FramingError",
    "ProtocolError",
    "RPCMismatchError",
    "RPCRemoteError",
    "ShortReadError",
    "TransportError",
    "exit_code_for",
    "encode_frame",
    "decode_frame",
    "read_frame",
    "write_frame",
    "encode_msg",
    "decode_msg",
    "BaseMsg",
    "File",
    "HTTPRequest",
    "HTTPResponse",
    "JobRequest",
    "JobResponse",
    "RPCRequest",
    "RPCResponse",
    "Serializer",
    "ByteStream",
    "load_schema",
    "validate_msg",
    "validate_reply",
]
