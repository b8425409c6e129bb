"""
Shared encoding utilities.

JFS segments are base64url text, usually without ``=`` padding, and keys are
``0x``-prefixed hex strings.  These helpers keep both conversions in one
place so that every caller decodes through the same path.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any

from eth_utils import decode_hex, is_0x_prefixed

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def b64url_decode(segment: str) -> bytes:
    """Decode base64url text, tolerating missing padding.

    Raises ``ValueError`` for anything outside the base64url alphabet and for
    padding other than exactly what completes the last quantum.
    """
    if not isinstance(segment, str):
        raise ValueError(f"segment must be str, got {type(segment).__name__}")
    if not _B64URL_RE.fullmatch(segment):
        raise ValueError("segment contains characters outside the base64url alphabet")
    data = segment.rstrip("=")
    padded = data + "=" * (-len(data) % 4)
    if segment != data and segment != padded:
        raise ValueError("segment has excess base64url padding")
    try:
        return base64.urlsafe_b64decode(padded)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64url segment: {exc}") from exc


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def hex_to_bytes(value: str) -> bytes:
    """Decode a ``0x``-prefixed hex string with an even digit count."""
    if not isinstance(value, str) or not is_0x_prefixed(value):
        raise ValueError("hex value must be a 0x-prefixed string")
    digits = value[2:]
    if len(digits) % 2:
        raise ValueError("hex value must have an even number of digits")
    try:
        return decode_hex(value)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid hex value: {value!r}") from exc


def encode_json_segment(obj: Any) -> str:
    """Serialize ``obj`` compactly and encode it as a base64url segment."""
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
    return b64url_encode(text.encode("utf-8"))


def decode_json_segment(segment: str) -> Any:
    """base64url-decode ``segment`` and parse the UTF-8 text as JSON.

    Raises ``ValueError`` (``json.JSONDecodeError`` and ``UnicodeDecodeError``
    are both subclasses) on any failure.
    """
    raw = b64url_decode(segment)
    return json.loads(raw.decode("utf-8"))
