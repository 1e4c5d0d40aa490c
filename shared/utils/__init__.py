from .common import CONTEXT_INDENT, indent_context, split_address

__all__ = ["split_address", "indent_context", "CONTEXT_INDENT"]
