"""
Envelope codec for JSON Farcaster Signatures (JFS).

A JFS envelope is a JWS look-alike: three base64url segments
(``header.payload.signature``), either dot-joined or as a
``{"header", "payload", "signature"}`` object.  It departs from JWS in two
ways that matter here: the signature is an Ethereum ``personal_sign``
signature, and some producers put the signature in as ``0x`` hex *text*
before base64url-encoding it.

Each segment is decoded independently by the step that consumes it.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, NamedTuple, Union

from eth_utils import encode_hex

from .config.settings import SignatureEncoding, VALID_RECOVERY_IDS
from .errors import (
    InvalidHeader,
    InvalidPayload,
    InvalidSignatureEncoding,
    InvalidSignatureLength,
    MalformedEnvelope,
)
from .helpers.encoding import b64url_decode, b64url_encode, decode_json_segment, hex_to_bytes

REQUIRED_HEADER_FIELDS = ("key", "type")


class EnvelopeParts(NamedTuple):
    """The three base64url segments of an envelope, still undecoded."""

    header: str
    payload: str
    signature: str

    def compact(self) -> str:
        return ".".join(self)


Envelope = Union[str, Mapping[str, str], EnvelopeParts]


def normalize(envelope: Envelope) -> EnvelopeParts:
    """Turn a compact string or a structured triple into :class:`EnvelopeParts`."""
    if isinstance(envelope, EnvelopeParts):
        parts = tuple(envelope)
    elif isinstance(envelope, str):
        parts = tuple(envelope.strip().split("."))
        if len(parts) != 3:
            raise MalformedEnvelope(f"compact envelope must have 3 segments, got {len(parts)}")
    elif isinstance(envelope, Mapping):
        missing = [name for name in EnvelopeParts._fields if name not in envelope]
        if missing:
            raise MalformedEnvelope(f"envelope object missing: {', '.join(missing)}")
        parts = tuple(envelope[name] for name in EnvelopeParts._fields)
    else:
        raise MalformedEnvelope(f"unsupported envelope type: {type(envelope).__name__}")

    for name, segment in zip(EnvelopeParts._fields, parts):
        if not isinstance(segment, str) or not segment:
            raise MalformedEnvelope(f"{name} segment must be a non-empty string")
    return EnvelopeParts(*parts)


def decode_header(segment: str) -> Dict[str, Any]:
    """Decode the header segment and check the fields the verifier relies on."""
    try:
        header = decode_json_segment(segment)
    except ValueError as exc:
        raise InvalidHeader(f"header is not base64url JSON: {exc}") from exc
    if not isinstance(header, dict):
        raise InvalidHeader(f"header must be a JSON object, got {type(header).__name__}")

    missing = [name for name in REQUIRED_HEADER_FIELDS if name not in header]
    if missing:
        raise InvalidHeader(f"header missing required field(s): {', '.join(missing)}")
    header_key_bytes(header)
    return header


def header_key_bytes(header: Mapping[str, Any]) -> bytes:
    """Decode ``header["key"]`` from ``0x`` hex."""
    try:
        return hex_to_bytes(header["key"])
    except KeyError:
        raise InvalidHeader("header missing required field(s): key") from None
    except ValueError as exc:
        raise InvalidHeader(f"header key is not valid 0x hex: {exc}") from exc


def decode_payload(segment: str) -> Any:
    """Decode the payload segment.  Any JSON value is accepted."""
    try:
        return decode_json_segment(segment)
    except ValueError as exc:
        raise InvalidPayload(f"payload is not base64url JSON: {exc}") from exc


def decode_signature(
    segment: str,
    encoding: SignatureEncoding,
    default_recovery_id: int = 27,
) -> bytes:
    """Decode the signature segment according to ``encoding``.

    Returns 65 bytes (``r||s||v``) for the recoverable encodings and 64 bytes
    (``r||s``) for ``RAW_64_NO_RECOVERY``.  ``RAW_64_DEFAULT_RECOVERY`` gets
    ``default_recovery_id`` appended after its length has been checked.
    """
    try:
        raw = b64url_decode(segment)
    except ValueError as exc:
        raise InvalidSignatureEncoding(f"signature is not base64url: {exc}") from exc

    if encoding is SignatureEncoding.HEX_TEXT_IN_BASE64:
        try:
            raw = hex_to_bytes(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise InvalidSignatureEncoding(f"signature is not 0x hex text: {exc}") from exc

    if len(raw) != encoding.expected_length:
        raise InvalidSignatureLength(encoding.expected_length, len(raw))

    if encoding is SignatureEncoding.RAW_64_DEFAULT_RECOVERY:
        if default_recovery_id not in VALID_RECOVERY_IDS:
            raise InvalidSignatureEncoding(f"default recovery id must be 27 or 28, got {default_recovery_id}")
        raw = raw + bytes([default_recovery_id])
    return raw


def encode_signature(signature: bytes, encoding: SignatureEncoding) -> str:
    """Lay out an existing 65-byte ``r||s||v`` signature as a signature segment.

    The 64-byte encodings drop ``v``.
    """
    if len(signature) != 65:
        raise InvalidSignatureLength(65, len(signature))
    if encoding is SignatureEncoding.HEX_TEXT_IN_BASE64:
        return b64url_encode(encode_hex(signature).encode("utf-8"))
    if encoding.expected_length == 64:
        return b64url_encode(signature[:64])
    return b64url_encode(signature)
