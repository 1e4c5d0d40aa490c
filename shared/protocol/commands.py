from __future__ import annotations

from enum import StrEnum
from typing import Dict, Iterable, Union


class MsgType(StrEnum):
    """
    Canonical names of the structured messages carried inside frames.
    The wire itself is untyped: both sides must agree on the type out of band.
    """

    # HTTP domain
    HTTP_REQUEST = "http/request"
    HTTP_RESPONSE = "http/response"
    HTTP_FILE = "http/file"

    # Job domain
    JOB_REQUEST = "job/request"
    JOB_RESPONSE = "job/response"


MESSAGE_GROUPS: Dict[str, str] = {
    MsgType.HTTP_REQUEST.value: "http",
    MsgType.HTTP_RESPONSE.value: "http",
    MsgType.HTTP_FILE.value: "http",
    MsgType.JOB_REQUEST.value: "job",
    MsgType.JOB_RESPONSE.value: "job",
}


def normalize_msg_type(msg_type: Union[str, MsgType]) -> str:
    """Convert enum/string into canonical message type text."""
    return msg_type.value if isinstance(msg_type, MsgType) else str(msg_type)


def is_msg_type(value: str) -> bool:
    """Check if `value` is a known message type."""
    try:
        MsgType(value)
        return True
    except ValueError:
        return False


def msg_types_in_group(group: str) -> Iterable[str]:
    """Yield message types belonging to the specified logical domain."""
    for msg_type, grp in MESSAGE_GROUPS.items():
        if grp == group:
            yield msg_type


__all__ = [
    "MsgType",
    "MESSAGE_GROUPS",
    "normalize_msg_type",
    "is_msg_type",
    "msg_types_in_group",
]
