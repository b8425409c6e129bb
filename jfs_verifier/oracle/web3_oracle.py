"""
web3-backed oracles.

``Web3SignatureOracle`` answers "did ``address`` sign ``digest``?" for both
plain accounts (local ecrecover) and smart-contract wallets (ERC-1271
``isValidSignature``).  ``IdRegistryResolver`` looks up the custody address
of a Farcaster id on OP Mainnet.

Both are fallible network clients: timeouts surface as ``OracleTimeout``,
other transport or RPC failures as ``OracleError``.  Results are never
cached.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from contextlib import contextmanager
from typing import Any, Mapping, Optional, Protocol

import requests
from eth_abi import decode, encode
from eth_account import Account
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak, to_checksum_address
from web3 import Web3
from web3.exceptions import Web3Exception

from ..config.network import DEFAULT_RPC_URLS, ERC1271_MAGIC_VALUE, ID_REGISTRY_ADDRESS
from ..envelope import header_key_bytes
from ..errors import (
    InvalidHeader,
    OracleError,
    OracleTimeout,
    SignatureRecoveryFailed,
    SignatureVerificationFailed,
)
from ..verifier import VerificationResult, declared_address

logger = logging.getLogger(__name__)

IS_VALID_SIGNATURE_SELECTOR = keccak(text="isValidSignature(bytes32,bytes)")[:4]
CUSTODY_OF_SELECTOR = keccak(text="custodyOf(uint256)")[:4]


class SignatureOracle(Protocol):
    def is_valid_signature(self, address: str, digest: bytes, signature: bytes, timeout: float) -> bool:
        ...


def make_web3(rpc_url: Optional[str] = None, timeout: float = 10.0) -> Web3:
    """Return a Web3 connected to ``rpc_url``, $RPC_URL or the primary fallback."""
    rpc_url = rpc_url or os.getenv("RPC_URL", DEFAULT_RPC_URLS[0])
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


@contextmanager
def _rpc_errors(what: str):
    try:
        yield
    except requests.exceptions.Timeout as exc:
        raise OracleTimeout(f"{what} timed out") from exc
    except (requests.exceptions.RequestException, Web3Exception, ValueError) as exc:
        raise OracleError(f"{what} failed: {exc}") from exc


class Web3SignatureOracle:
    """Checks signatures through a JSON-RPC node.

    Each call runs on a worker thread so the caller's ``timeout`` bounds the
    whole round trip, not just one socket read.  Use it as a context manager
    (or call :meth:`close`) so the worker pool is released.
    """

    def __init__(self, w3: Web3, max_workers: int = 4):
        self.w3 = w3
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="jfs-oracle")

    def is_valid_signature(self, address: str, digest: bytes, signature: bytes, timeout: float) -> bool:
        future = self._pool.submit(self._check, to_checksum_address(address), digest, signature)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeout as exc:
            future.cancel()
            raise OracleTimeout(f"signature check for {address} exceeded {timeout}s") from exc

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "Web3SignatureOracle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check(self, address: str, digest: bytes, signature: bytes) -> bool:
        with _rpc_errors(f"eth_getCode({address})"):
            code = self.w3.eth.get_code(address)

        if code:
            calldata = IS_VALID_SIGNATURE_SELECTOR + encode(["bytes32", "bytes"], [digest, signature])
            with _rpc_errors(f"isValidSignature on {address}"):
                result = self.w3.eth.call({"to": address, "data": calldata})
            valid = bytes(result[:4]) == ERC1271_MAGIC_VALUE
            logger.debug("ERC-1271 check for %s: %s", address, valid)
            return valid

        # plain account: only a recoverable signature can be checked
        if len(signature) != 65:
            raise SignatureVerificationFailed(
                f"{address} has no contract code; a 65-byte recoverable signature is required"
            )
        try:
            recovered = Account._recover_hash(digest, signature=signature)
        except (BadSignature, ValidationError, ValueError) as exc:
            raise SignatureRecoveryFailed(f"could not recover signer for {address}: {exc}") from exc
        return recovered.lower() == address.lower()


class IdRegistryResolver:
    """Resolves ``fid -> custody address`` via ``IdRegistry.custodyOf``."""

    def __init__(self, w3: Web3, registry_address: str = ID_REGISTRY_ADDRESS):
        self.w3 = w3
        self.registry_address = to_checksum_address(registry_address)

    def resolve_custody_address(self, fid: Any) -> str:
        try:
            fid_int = int(fid)
        except (TypeError, ValueError):
            raise InvalidHeader(f"fid must be an integer, got {fid!r}") from None
        if fid_int < 0:
            raise InvalidHeader(f"fid must be non-negative, got {fid_int}")

        calldata = CUSTODY_OF_SELECTOR + encode(["uint256"], [fid_int])
        with _rpc_errors(f"custodyOf({fid_int})"):
            raw = self.w3.eth.call({"to": self.registry_address, "data": calldata})
        (custody,) = decode(["address"], bytes(raw))
        return to_checksum_address(custody)


def check_custody(result: VerificationResult, resolver: IdRegistryResolver) -> bool:
    """True when ``result`` is valid and its key is the fid's current custody address."""
    header: Mapping[str, Any] = result.header
    if "fid" not in header:
        raise InvalidHeader("header has no fid to resolve")
    if not result.valid:
        return False
    claimed = declared_address(header_key_bytes(header))
    custody = resolver.resolve_custody_address(header["fid"])
    return claimed == bytes.fromhex(custody[2:])
