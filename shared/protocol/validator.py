from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .errors import DecodeError, EncodeError

SCHEMA_DIR = Path(__file__).parent / "schemas"

RPC_REQUEST = "rpc.request"
RPC_RESPONSE = "rpc.response"

# Mapping schema name -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    RPC_REQUEST: "rpc.request.json",
    RPC_RESPONSE: "rpc.response.json",
}


def _schema_path(name: str) -> Optional[Path]:
    filename = SCHEMA_REGISTRY.get(name)
    if not filename:
        return None
    path = SCHEMA_DIR / filename
    return path if path.exists() else None


@lru_cache(maxsize=16)
def load_schema(name: str) -> Optional[dict]:
    """Load JSON schema by name if present."""
    path = _schema_path(name)
    if not path:
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_msg(msg: Dict[str, Any], schema: Optional[dict] = None) -> None:
    """Validate an outgoing RPC document; failures are encode errors."""
    schema = schema or load_schema(RPC_REQUEST)
    if schema:
        try:
            jsonschema.validate(instance=msg, schema=schema)
        except jsonschema.ValidationError as exc:
            raise EncodeError(f"Schema validation failed: {exc.message}") from exc


def validate_reply(msg: Dict[str, Any], schema: Optional[dict] = None) -> None:
    """Validate an incoming RPC document; failures are decode errors."""
    schema = schema or load_schema(RPC_RESPONSE)
    if schema:
        try:
            jsonschema.validate(instance=msg, schema=schema)
        except jsonschema.ValidationError as exc:
            raise DecodeError(f"Schema validation failed: {exc.message}") from exc


__all__ = ["RPC_REQUEST", "RPC_RESPONSE", "load_schema", "validate_msg", "validate_reply"]
