"""
Verifier for JSON Farcaster Signatures (JFS).

Avoid importing the web3 oracle at import time; it is only needed when an
on-chain check is requested.
"""

from .config.settings import SignatureEncoding, VerifierConfig
from .envelope import EnvelopeParts, normalize
from .errors import (
    ConfigurationError,
    InvalidHeader,
    InvalidPayload,
    InvalidRecoveryId,
    InvalidSignatureEncoding,
    InvalidSignatureLength,
    JfsError,
    MalformedEnvelope,
    OracleError,
    OracleTimeout,
    SignatureRecoveryFailed,
    SignatureVerificationFailed,
    UnsupportedKeyType,
)
from .verifier import SignatureVerifier, VerificationResult, verify_envelope
from .batch import BatchOutcome, verify_many

__version__ = "0.1.0"

__all__ = [
    "BatchOutcome",
    "ConfigurationError",
    "EnvelopeParts",
    "InvalidHeader",
    "InvalidPayload",
    "InvalidRecoveryId",
    "InvalidSignatureEncoding",
    "InvalidSignatureLength",
    "JfsError",
    "MalformedEnvelope",
    "OracleError",
    "OracleTimeout",
    "SignatureEncoding",
    "SignatureRecoveryFailed",
    "SignatureVerificationFailed",
    "SignatureVerifier",
    "UnsupportedKeyType",
    "VerificationResult",
    "VerifierConfig",
    "normalize",
    "verify_envelope",
    "verify_many",
]
