"""Verifier settings.

Settings are plain values; nothing here touches the network.  They can be
built directly or loaded from the environment (optionally via a ``.env``
file), e.g.::

    JFS_SIGNATURE_ENCODING=hex_text_in_base64
    JFS_REQUIRE_CUSTODY=true
    JFS_DEFAULT_RECOVERY_ID=27
    JFS_ORACLE_TIMEOUT=10
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ..errors import ConfigurationError

CUSTODY_KEY_TYPE = "custody"
VALID_RECOVERY_IDS = (27, 28)


class SignatureEncoding(str, Enum):
    """How the signature segment is laid out once base64url-decoded."""

    RAW_65 = "raw_65"
    HEX_TEXT_IN_BASE64 = "hex_text_in_base64"
    RAW_64_NO_RECOVERY = "raw_64_no_recovery"
    RAW_64_DEFAULT_RECOVERY = "raw_64_default_recovery"

    @property
    def expected_length(self) -> int:
        """Number of signature bytes the segment must decode to."""
        if self in (SignatureEncoding.RAW_65, SignatureEncoding.HEX_TEXT_IN_BASE64):
            return 65
        return 64

    @property
    def recoverable(self) -> bool:
        return self is not SignatureEncoding.RAW_64_NO_RECOVERY

    @classmethod
    def parse(cls, value: str) -> "SignatureEncoding":
        normalized = value.strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(e.value for e in cls)
            raise ConfigurationError(
                f"Unknown signature encoding {value!r} (expected one of: {choices})"
            ) from None


@dataclass(frozen=True)
class VerifierConfig:
    """Knobs for :class:`~jfs_verifier.verifier.SignatureVerifier`.

    Args:
        encoding: Signature segment layout; never auto-detected.
        require_custody: Reject headers whose ``type`` is not ``"custody"``.
            Turning this off is the looser mode and has to be explicit.
        default_recovery_id: Byte appended for ``RAW_64_DEFAULT_RECOVERY``.
        oracle_timeout: Seconds an external oracle may take per call.
    """

    encoding: SignatureEncoding = SignatureEncoding.RAW_65
    require_custody: bool = True
    default_recovery_id: int = 27
    oracle_timeout: float = 10.0

    def __post_init__(self):
        if not isinstance(self.encoding, SignatureEncoding):
            object.__setattr__(self, "encoding", SignatureEncoding.parse(str(self.encoding)))
        if self.default_recovery_id not in VALID_RECOVERY_IDS:
            raise ConfigurationError(
                f"default_recovery_id must be 27 or 28, got {self.default_recovery_id}"
            )
        if self.oracle_timeout <= 0:
            raise ConfigurationError("oracle_timeout must be positive")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "VerifierConfig":
        """Build a config from ``JFS_*`` environment variables.

        A ``.env`` in the working directory is loaded first when present, then
        ``env_file`` if given.  Unset variables keep their defaults.
        """
        base_env = Path(".env")
        if base_env.exists():
            load_dotenv(base_env)
        if env_file:
            if not Path(env_file).exists():
                raise ConfigurationError(f"env file not found: {env_file}")
            load_dotenv(env_file, override=True)

        kwargs = {}
        encoding = os.getenv("JFS_SIGNATURE_ENCODING")
        if encoding:
            kwargs["encoding"] = SignatureEncoding.parse(encoding)
        require_custody = os.getenv("JFS_REQUIRE_CUSTODY")
        if require_custody:
            kwargs["require_custody"] = _parse_bool("JFS_REQUIRE_CUSTODY", require_custody)
        recovery_id = os.getenv("JFS_DEFAULT_RECOVERY_ID")
        if recovery_id:
            kwargs["default_recovery_id"] = _parse_int("JFS_DEFAULT_RECOVERY_ID", recovery_id)
        timeout = os.getenv("JFS_ORACLE_TIMEOUT")
        if timeout:
            try:
                kwargs["oracle_timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(f"JFS_ORACLE_TIMEOUT must be a number, got {timeout!r}") from None
        return cls(**kwargs)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value, 0)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
