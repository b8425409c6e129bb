"""EIP-191 personal-message helpers.

See https://eips.ethereum.org/EIPS/eip-191 (version 0x45).
"""

from __future__ import annotations

from eth_utils import keccak

PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"


def signing_input(header_b64: str, payload_b64: str) -> bytes:
    """Return the bytes of ``header.payload`` exactly as transmitted."""
    return f"{header_b64}.{payload_b64}".encode("utf-8")


def to_personal_message(message: bytes) -> bytes:
    """Prefix ``message`` with the personal-sign header and its decimal length."""
    return PERSONAL_MESSAGE_PREFIX + str(len(message)).encode("ascii") + message


def personal_message_digest(message: bytes) -> bytes:
    """keccak-256 over the prefixed message; what wallets sign for ``personal_sign``."""
    return keccak(to_personal_message(message))


def address_from_public_key(public_key: bytes) -> bytes:
    """Derive the 20-byte address from a 64-byte ``x||y`` public key."""
    if len(public_key) != 64:
        raise ValueError(f"public key must be 64 bytes, got {len(public_key)}")
    return keccak(public_key)[-20:]
