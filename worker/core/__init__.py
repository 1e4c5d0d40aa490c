from .dispatcher import Dispatcher, DispatcherState, Handler
from .router import HandlerRouter, TypedHandler, typed_handler

__all__ = ["Dispatcher", "DispatcherState", "Handler", "HandlerRouter", "TypedHandler", "typed_handler"]
