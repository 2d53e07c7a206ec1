"""
Canonical byte encoding for ledger commitments.

A commitment is SHA-256 over a domain tag followed by the canonical JSON of a
value. Two ledgers with the same contents always produce the same commitment,
regardless of dict insertion order.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

_DOMAIN_PREFIX = b"zswap:"


def _check_encodable(value: Any, path: str = "$") -> None:
    if isinstance(value, float):
        raise TypeError(f"{path}: floats are not allowed, amounts are integers")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"{path}: object keys must be str, got {type(k).__name__}")
            _check_encodable(v, f"{path}.{k}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_encodable(item, f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """
    UTF-8 JSON with sorted keys and no whitespace.

    Floats are rejected so that every amount has exactly one encoding.
    """
    _check_encodable(value)
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def domain_tag(label: str, version: int = 1) -> bytes:
    """`zswap:<label>:v<version>` followed by NUL, so tag and payload cannot run together."""
    if not isinstance(label, str) or not label or not label.isascii() or "\x00" in label:
        raise ValueError(f"label must be a non-empty ASCII string without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return _DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"


def commitment_bytes(label: str, value: Any, *, version: int = 1) -> bytes:
    return hashlib.sha256(domain_tag(label, version) + canonical_json_bytes(value)).digest()


def commitment_hex(label: str, value: Any, *, version: int = 1) -> str:
    return "0x" + commitment_bytes(label, value, version=version).hex()
