from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from client.config import CLIENT_CONFIG, ConfigError, load_config
from client.core import RPCClient
from shared.protocol.errors import ProtocolError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue one JSON line RPC call and print the reply.")
    parser.add_argument("method", help="Remote method, e.g. RPCHandler.RunJob")
    parser.add_argument("arg", nargs="?", default="null", help="JSON encoded argument (default: null)")
    parser.add_argument("--address", help="host:port of the peer (default: CLIENT_RPC_ADDRESS)")
    return parser


def run_client(argv: Optional[Sequence[str]] = None) -> int:
    load_config()
    logging.basicConfig(level=CLIENT_CONFIG["log_level"].upper())
    args = build_parser().parse_args(argv)
    try:
        arg = json.loads(args.arg)
    except json.JSONDecodeError as exc:
        print(f"Argument is not valid JSON: {exc}", file=sys.stderr)
        return 2

    try:
        with RPCClient(args.address) as rpc:
            response = rpc.send(args.method, arg)
    except (ProtocolError, ConfigError) as exc:
        print(f"RPC failed: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(response.model_dump(), ensure_ascii=False))
    return 0 if response.ok else 1


def main() -> None:
    sys.exit(run_client())


if __name__ == "__main__":
    main()
