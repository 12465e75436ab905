"""
Canonical JSON encoding for ledger commitments.

A snapshot hashes to the same state root on every platform only if its
encoding is unambiguous: sorted keys, no whitespace, UTF-8, integers only.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


STATE_ROOT_PREFIX = b"interest_ledger:"


def _check_encodable(value: Any, path: str = "$") -> None:
    """Reject floats, non-str keys and lone surrogates anywhere in `value`."""
    if isinstance(value, float):
        raise TypeError(f"float at {path}: amounts and rates must be ints")
    if isinstance(value, str):
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError(f"surrogate code point at {path}")
    elif isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"non-str key {key!r} at {path}")
            _check_encodable(key, path)
            _check_encodable(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_encodable(item, f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    _check_encodable(value)
    text = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`interest_ledger:<label>:v<version>` followed by NUL, so prefixes never collide."""
    if not isinstance(label, str) or not label or not label.isascii() or "\x00" in label:
        raise ValueError(f"label must be non-empty ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return STATE_ROOT_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"
