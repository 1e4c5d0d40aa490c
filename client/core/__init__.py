from .rpc import RPCClient

__all__ = ["RPCClient"]
