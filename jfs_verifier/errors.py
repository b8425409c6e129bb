"""Error taxonomy for JSON Farcaster Signature verification.

Every error raised by the verifier derives from :class:`JfsError`.  A
signature that is well formed but simply does not match the declared key is
*not* an error; it yields ``valid=False`` on the result instead.
"""

from __future__ import annotations


class JfsError(Exception):
    """Base class for all verification failures."""


class ConfigurationError(JfsError):
    """Raised when verifier settings are missing or invalid."""


class MalformedEnvelope(JfsError):
    """The envelope is not three non-empty base64url segments."""


class InvalidHeader(JfsError):
    """The header segment could not be decoded or lacks required fields."""


class InvalidPayload(JfsError):
    """The payload segment could not be decoded as JSON."""


class InvalidSignatureEncoding(JfsError):
    """The signature segment could not be decoded for the configured encoding."""


class InvalidSignatureLength(InvalidSignatureEncoding):
    """The decoded signature has the wrong number of bytes."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"signature must be {expected} bytes but received {actual}")


class InvalidRecoveryId(JfsError):
    """The trailing recovery byte is not 27 or 28."""

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Invalid recovery id: {value}")


class UnsupportedKeyType(JfsError):
    """The header ``type`` is not accepted by the chosen verification path."""

    def __init__(self, key_type):
        self.key_type = key_type
        super().__init__(f"Unsupported JFS key type: {key_type!r}")


class SignatureRecoveryFailed(JfsError):
    """No public key could be recovered from the signature."""


class SignatureVerificationFailed(JfsError):
    """The non-recoverable signature could not be checked against the key."""


class OracleError(JfsError):
    """An external verification oracle failed to answer."""


class OracleTimeout(OracleError):
    """An external verification oracle did not answer in time."""
