"""Protocol-wide constants shared by the worker and the RPC client."""

ENCODING = "utf-8"
FRAME_DELIMITER = b"\n"
READY_SIGNAL = b"ok\n"
STOP_SIGNAL = b"exit"  # header line the supervisor sends to stop the worker
DEFAULT_CHUNK_SIZE = 2048  # bytes per underlying read/write of a frame payload
UINT64_SIZE = 8
UINT64_MAX = 2**64 - 1
MAX_RPC_LINE_SIZE = 16 * 1024 * 1024  # upper bound for one JSON reply line

__all__ = [
    "ENCODING",
    "FRAME_DELIMITER",
    "READY_SIGNAL",
    "STOP_SIGNAL",
    "DEFAULT_CHUNK_SIZE",
    "UINT64_SIZE",
    "UINT64_MAX",
    "MAX_RPC_LINE_SIZE",
]
