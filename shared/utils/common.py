from __future__ import annotations

from typing import Tuple

CONTEXT_INDENT = " " * 9


def split_address(address: str) -> Tuple[str, int]:
    """Split `host:port` into its parts; IPv6 hosts may be bracketed."""
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Address must look like host:port, got {address!r}")
    port_no = int(port)
    if not 1 <= port_no <= 65535:
        raise ValueError(f"Port out of range in {address!r}")
    return host.strip("[]"), port_no


def indent_context(text: str, indent: str = CONTEXT_INDENT) -> str:
    """Indent every continuation line so a multi-line block lines up after its label."""
    return text.rstrip("\n").replace("\n", "\n" + indent)


__all__ = ["split_address", "indent_context", "CONTEXT_INDENT"]
