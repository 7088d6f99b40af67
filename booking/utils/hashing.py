"""Stable Redis keys derived from request payloads"""
import hashlib
import json
from typing import Any, Dict


def payload_hash(payload: Dict[str, Any]) -> str:
    s = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(s.encode()).hexdigest()


def cache_key(namespace: str, payload: Dict[str, Any]) -> str:
    """``quote:<sha256>``; field order in the payload does not matter."""
    return f"{namespace}:{payload_hash(payload)}"
