from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Dict, Optional, Union

from shared.protocol.commands import MsgType
from shared.protocol.errors import ApplicationError
from shared.protocol.messages import BaseMsg, message_class
from shared.protocol.serializer import Serializer

from .dispatcher import Handler

logger = logging.getLogger(__name__)

TypedHandler = Callable[[BaseMsg], BaseMsg]


def typed_handler(
    msg_type: Union[str, MsgType],
    fn: TypedHandler,
    serializer: Optional[Serializer] = None,
) -> Handler:
    """Wrap `fn(request) -> response` as a raw Dispatcher handler."""
    serializer = serializer or Serializer()
    request_cls = message_class(msg_type)

    def handle(payload: bytes) -> bytes:
        request = serializer.decode(request_cls.msg_type, payload)
        response = fn(request)
        if not isinstance(response, BaseMsg):
            raise ApplicationError(f"Handler for {request_cls.msg_type} returned {type(response).__name__}")
        return serializer.encode(response)

    handle.__name__ = getattr(fn, "__name__", "handle")
    return handle


class HandlerRouter:
    """Maps handler names to raw handlers so the entry point can pick one by config."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> None:
        self._handlers[name] = handler

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def resolve(self, name: str) -> Handler:
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"No handler registered as {name!r}; known: {', '.join(self.names()) or 'none'}")
        logger.debug("Resolved handler %s", name)
        return handler
