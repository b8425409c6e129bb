"""Verifier configuration."""

from .settings import SignatureEncoding, VerifierConfig

__all__ = ["SignatureEncoding", "VerifierConfig"]
