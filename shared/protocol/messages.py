from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .commands import MsgType, normalize_msg_type
from .constants import UINT64_MAX
from .errors import DecodeError


def _uint64(description: str, default: Optional[int] = None) -> Any:
    if default is None:
        return Field(..., ge=0, le=UINT64_MAX, description=description)
    return Field(default=default, ge=0, le=UINT64_MAX, description=description)


class BaseMsg(BaseModel):
    """Base for every structured message; built fresh per frame and never mutated."""

    model_config = ConfigDict(frozen=True)

    msg_type: ClassVar[Optional[MsgType]] = None


class File(BaseMsg):
    msg_type: ClassVar[MsgType] = MsgType.HTTP_FILE

    filename: str = Field(..., description="Client supplied file name")
    tmp_path: str = Field(..., description="Where the supervisor stored the upload")
    size: int = _uint64("Size in bytes")


class HTTPRequest(BaseMsg):
    msg_type: ClassVar[MsgType] = MsgType.HTTP_REQUEST

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    files: Dict[str, File] = Field(default_factory=dict)
    form: Dict[str, str] = Field(default_factory=dict)


class HTTPResponse(BaseMsg):
    msg_type: ClassVar[MsgType] = MsgType.HTTP_RESPONSE

    status_code: int = _uint64("HTTP status code", default=200)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""


class JobRequest(BaseMsg):
    msg_type: ClassVar[MsgType] = MsgType.JOB_REQUEST

    name: str
    payload: bytes = b""
    timeout: int = _uint64("Timeout in milliseconds", default=0)


class JobResponse(BaseMsg):
    msg_type: ClassVar[MsgType] = MsgType.JOB_RESPONSE

    payload: bytes = b""


MESSAGE_REGISTRY: Dict[str, Type[BaseMsg]] = {
    MsgType.HTTP_REQUEST.value: HTTPRequest,
    MsgType.HTTP_RESPONSE.value: HTTPResponse,
    MsgType.HTTP_FILE.value: File,
    MsgType.JOB_REQUEST.value: JobRequest,
    MsgType.JOB_RESPONSE.value: JobResponse,
}


def message_class(msg_type: Any) -> Type[BaseMsg]:
    """Look up the model class registered for a message type."""
    cls = MESSAGE_REGISTRY.get(normalize_msg_type(msg_type))
    if cls is None:
        raise DecodeError(f"Unknown message type {msg_type!r}")
    return cls


class RPCRequest(BaseModel):
    """One call on the JSON line channel."""

    id: int = Field(..., ge=0, le=UINT64_MAX)
    method: str = Field(..., min_length=1)
    params: list[Any] = Field(default_factory=list)


class RPCResponse(BaseModel):
    """One reply on the JSON line channel; `error` set means the peer failed the call."""

    id: int = Field(..., ge=0, le=UINT64_MAX)
    result: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RPCResponse":
        try:
            return cls(**data)
        except ValidationError as exc:
            raise DecodeError(f"RPC response validation failed: {exc}") from exc


__all__ = [
    "BaseMsg",
    "File",
    "HTTPRequest",
    "HTTPResponse",
    "JobRequest",
    "JobResponse",
    "MESSAGE_REGISTRY",
    "message_class",
    "RPCRequest",
    "RPCResponse",
]
