"""
Optional on-chain collaborators.

Nothing here is used by :class:`~jfs_verifier.verifier.SignatureVerifier`
unless an oracle is passed to it explicitly.
"""

from .web3_oracle import (
    IdRegistryResolver,
    SignatureOracle,
    Web3SignatureOracle,
    check_custody,
    make_web3,
)

__all__ = [
    "IdRegistryResolver",
    "SignatureOracle",
    "Web3SignatureOracle",
    "check_custody",
    "make_web3",
]
