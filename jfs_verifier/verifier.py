"""
Signature verification for JSON Farcaster Signatures (JFS).

The signed bytes are the base64url header and payload segments joined by a
dot, exactly as transmitted, wrapped in the EIP-191 personal-message prefix
and hashed with keccak-256.  A recoverable signature (``r||s||v``) is
checked by recovering the signer and comparing it with ``header["key"]``;
a non-recoverable one (``r||s``) is verified directly against the declared
public key.

Verification holds no state between calls.  An optional oracle may stand in
for local recovery (e.g. smart-contract custody wallets); its answers are not
cached here.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Mapping, Optional

from eth_keys import keys
from eth_keys.constants import SECPK1_A, SECPK1_B, SECPK1_P
from eth_keys.datatypes import NonRecoverableSignature
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import big_endian_to_int, encode_hex, to_checksum_address

from .config.settings import CUSTODY_KEY_TYPE, VALID_RECOVERY_IDS, SignatureEncoding, VerifierConfig
from .envelope import Envelope, decode_header, decode_payload, decode_signature, header_key_bytes, normalize
from .errors import (
    InvalidHeader,
    InvalidRecoveryId,
    InvalidSignatureLength,
    SignatureRecoveryFailed,
    SignatureVerificationFailed,
    UnsupportedKeyType,
)
from .helpers.eth_message import address_from_public_key, personal_message_digest, signing_input

logger = logging.getLogger(__name__)

Diagnostics = Callable[[str, Dict[str, Any]], None]

# header key forms, by decoded length
ADDRESS = "address"
PUBLIC_KEY_RAW = "public_key_raw"
PUBLIC_KEY_UNCOMPRESSED = "public_key_uncompressed"
PUBLIC_KEY_COMPRESSED = "public_key_compressed"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of one verification: the boolean plus the decoded inputs."""

    valid: bool
    header: Dict[str, Any]
    payload: Any


def key_form(key: bytes) -> str:
    """Classify decoded ``header["key"]`` bytes; raise ``InvalidHeader`` if unknown."""
    if len(key) == 20:
        return ADDRESS
    if len(key) == 64:
        return PUBLIC_KEY_RAW
    if len(key) == 65 and key[0] == 0x04:
        return PUBLIC_KEY_UNCOMPRESSED
    if len(key) == 33 and key[0] in (0x02, 0x03):
        return PUBLIC_KEY_COMPRESSED
    raise InvalidHeader(
        f"header key must be a 20-byte address or a public key, got {len(key)} bytes"
    )


def public_key_from_header_key(key: bytes) -> keys.PublicKey:
    """Build an ``eth_keys`` public key from any public-key form of ``header["key"]``."""
    form = key_form(key)
    if form == ADDRESS:
        raise InvalidHeader("header key is an address, not a public key")
    try:
        if form == PUBLIC_KEY_RAW:
            public_key = keys.PublicKey(key)
        elif form == PUBLIC_KEY_UNCOMPRESSED:
            public_key = keys.PublicKey(key[1:])
        else:
            public_key = keys.PublicKey.from_compressed_bytes(key)
    except (ValidationError, ValueError) as exc:
        raise InvalidHeader(f"header key is not a valid secp256k1 point: {exc}") from exc
    # PublicKey only checks the length
    if not _on_curve(public_key.to_bytes()):
        raise InvalidHeader("header key is not a point on secp256k1")
    return public_key


def _on_curve(raw: bytes) -> bool:
    x = big_endian_to_int(raw[:32])
    y = big_endian_to_int(raw[32:])
    if x >= SECPK1_P or y >= SECPK1_P:
        return False
    return (y * y - (x * x * x + SECPK1_A * x + SECPK1_B)) % SECPK1_P == 0


def declared_address(key: bytes) -> bytes:
    """Address implied by ``header["key"]``, whatever form it is in."""
    if key_form(key) == ADDRESS:
        return key
    return address_from_public_key(public_key_from_header_key(key).to_bytes())


def _encode_public_key(public_key: keys.PublicKey, form: str) -> bytes:
    raw = public_key.to_bytes()
    if form == ADDRESS:
        return address_from_public_key(raw)
    if form == PUBLIC_KEY_UNCOMPRESSED:
        return b"\x04" + raw
    if form == PUBLIC_KEY_COMPRESSED:
        return public_key.to_compressed_bytes()
    return raw


class SignatureVerifier:
    """Verifies JFS envelopes under one fixed :class:`VerifierConfig`.

    Args:
        config: Encoding and policy settings; defaults to ``VerifierConfig()``.
        oracle: Optional :class:`~jfs_verifier.oracle.SignatureOracle` that
            replaces local recovery / verification.
        diagnostics: Optional ``(event, fields)`` callback that receives
            intermediate cryptographic values.  Nothing is emitted without it.
    """

    def __init__(
        self,
        config: Optional[VerifierConfig] = None,
        oracle=None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.config = config or VerifierConfig()
        self.oracle = oracle
        self.diagnostics = diagnostics

    # ------------------------------------------------------------------ #
    # entry points                                                       #
    # ------------------------------------------------------------------ #

    def verify_envelope(self, envelope: Envelope) -> VerificationResult:
        """Normalize, decode and verify ``envelope``."""
        parts = normalize(envelope)
        header = decode_header(parts.header)
        payload = decode_payload(parts.payload)
        signature = decode_signature(
            parts.signature, self.config.encoding, self.config.default_recovery_id
        )
        return self.verify(header, payload, parts.header, parts.payload, signature)

    def verify(
        self,
        header: Mapping[str, Any],
        payload: Any,
        header_b64: str,
        payload_b64: str,
        signature: bytes,
    ) -> VerificationResult:
        """Verify already-decoded parts.

        ``header_b64`` and ``payload_b64`` must be the segments as received;
        they are what was signed, not the decoded JSON.
        """
        self._check_key_type(header)
        key = header_key_bytes(header)
        form = key_form(key)

        encoding = self.config.encoding
        expected = 65 if encoding.recoverable else 64
        if len(signature) != expected:
            raise InvalidSignatureLength(expected, len(signature))

        digest = personal_message_digest(signing_input(header_b64, payload_b64))
        self._emit("jfs.message_digest", digest=encode_hex(digest))

        if encoding.recoverable:
            valid = self._verify_recoverable(key, form, digest, signature)
        else:
            valid = self._verify_direct(key, form, digest, signature)

        logger.debug(
            "JFS signature for fid %s (%s, %s key): %s",
            header.get("fid"), encoding.value, form, "valid" if valid else "INVALID",
        )
        return VerificationResult(valid=valid, header=dict(header), payload=payload)

    # ------------------------------------------------------------------ #
    # internals                                                          #
    # ------------------------------------------------------------------ #

    def _check_key_type(self, header: Mapping[str, Any]) -> None:
        if self.config.require_custody and header.get("type") != CUSTODY_KEY_TYPE:
            raise UnsupportedKeyType(header.get("type"))

    def _verify_recoverable(self, key: bytes, form: str, digest: bytes, signature: bytes) -> bool:
        v = signature[64]
        if v not in VALID_RECOVERY_IDS:
            raise InvalidRecoveryId(v)

        if self.oracle is not None:
            return self._ask_oracle(key, digest, signature)

        try:
            sig = keys.Signature(vrs=(
                v - 27,
                big_endian_to_int(signature[:32]),
                big_endian_to_int(signature[32:64]),
            ))
            public_key = sig.recover_public_key_from_msg_hash(digest)
        except (BadSignature, ValidationError, ValueError) as exc:
            raise SignatureRecoveryFailed(f"could not recover public key: {exc}") from exc

        candidate = _encode_public_key(public_key, form)
        self._emit(
            "jfs.key_recovered",
            public_key=encode_hex(public_key.to_bytes()),
            address=to_checksum_address(address_from_public_key(public_key.to_bytes())),
        )
        return _same_bytes(candidate, key)

    def _verify_direct(self, key: bytes, form: str, digest: bytes, signature: bytes) -> bool:
        if form == ADDRESS:
            if self.oracle is None:
                raise InvalidHeader(
                    "non-recoverable signatures need a public key in the header, not an address"
                )
            return self._ask_oracle(key, digest, signature)

        public_key = public_key_from_header_key(key)
        try:
            sig = NonRecoverableSignature(rs=(
                big_endian_to_int(signature[:32]),
                big_endian_to_int(signature[32:64]),
            ))
            valid = bool(public_key.verify_msg_hash(digest, sig))
        except (BadSignature, ValidationError, ValueError) as exc:
            raise SignatureVerificationFailed(f"could not verify signature: {exc}") from exc

        self._emit("jfs.signature_checked", public_key=encode_hex(public_key.to_bytes()), valid=valid)
        return valid

    def _ask_oracle(self, key: bytes, digest: bytes, signature: bytes) -> bool:
        address = to_checksum_address(declared_address(key))
        valid = bool(self.oracle.is_valid_signature(
            address, digest, signature, timeout=self.config.oracle_timeout,
        ))
        self._emit("jfs.oracle_checked", address=address, valid=valid)
        return valid

    def _emit(self, event: str, **fields: Any) -> None:
        if self.diagnostics is not None:
            self.diagnostics(event, fields)


def _same_bytes(a: bytes, b: bytes) -> bool:
    if len(a) != len(b):
        return False
    return hmac.compare_digest(a, b)


def verify_envelope(
    envelope: Envelope,
    config: Optional[VerifierConfig] = None,
    *,
    encoding: Optional[SignatureEncoding] = None,
    oracle=None,
) -> VerificationResult:
    """One-shot helper around :meth:`SignatureVerifier.verify_envelope`.

    ``encoding`` overrides the encoding in ``config`` when given.
    """
    config = config or VerifierConfig()
    if encoding is not None:
        config = replace(config, encoding=encoding)
    return SignatureVerifier(config, oracle=oracle).verify_envelope(envelope)
