#!/usr/bin/env python3
"""
jfs-verify
==========
Verify Farcaster account associations (JSON Farcaster Signatures).

Usage
-----
    jfs-verify verify <compact-jfs | manifest.json> [--encoding raw_65] [--allow-any-type]
    jfs-verify batch data/*.json [--encoding hex_text_in_base64]

    # optional on-chain checks
    RPC_URL=<optimism json-rpc> jfs-verify verify farcaster.json --use-oracle --check-custody

A JSON file may be a Farcaster manifest (``{"accountAssociation": {...}}``)
or a bare ``{"header", "payload", "signature"}`` object.

Exit codes: 0 valid, 1 invalid, 2 error.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Iterator, Optional

from tabulate import tabulate

from ..batch import verify_many
from ..config.settings import SignatureEncoding, VerifierConfig
from ..envelope import Envelope
from ..errors import JfsError, MalformedEnvelope
from ..verifier import SignatureVerifier, VerificationResult


def load_envelope(source: str) -> Envelope:
    """Read an envelope from a file path, or treat ``source`` as a compact string."""
    path = Path(source)
    try:
        is_file = path.is_file()
    except OSError:
        # a compact envelope is usually longer than NAME_MAX
        is_file = False
    if not is_file:
        return source

    text = path.read_text(encoding="utf-8").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # plain text file holding a compact envelope
        return text

    if isinstance(data, dict) and "accountAssociation" in data:
        data = data["accountAssociation"]
    if isinstance(data, (dict, str)):
        return data
    raise MalformedEnvelope(f"{source}: expected a JSON object or string, got {type(data).__name__}")


def _domain(result: VerificationResult) -> str:
    if isinstance(result.payload, dict):
        return str(result.payload.get("domain", "?"))
    return "?"


def _build_config(args: argparse.Namespace) -> VerifierConfig:
    config = VerifierConfig.from_env(args.env_file)
    if args.encoding:
        config = replace(config, encoding=SignatureEncoding.parse(args.encoding))
    if args.allow_any_type:
        config = replace(config, require_custody=False)
    return config


@contextmanager
def open_verifier(args: argparse.Namespace, config: VerifierConfig) -> Iterator[SignatureVerifier]:
    """Yield a verifier; an oracle created for ``--use-oracle`` is closed on exit."""
    if not getattr(args, "use_oracle", False):
        yield SignatureVerifier(config)
        return

    from ..oracle import Web3SignatureOracle, make_web3
    with Web3SignatureOracle(make_web3(args.rpc_url, timeout=config.oracle_timeout)) as oracle:
        yield SignatureVerifier(config, oracle=oracle)


def cmd_verify(args: argparse.Namespace) -> int:
    try:
        config = _build_config(args)
        with open_verifier(args, config) as verifier:
            result = verifier.verify_envelope(load_envelope(args.envelope))

        print(f"Farcaster Manifest for {_domain(result)} is {'valid' if result.valid else 'INVALID'}")
        print(f"FID: {result.header.get('fid')}")
        print(f"Key: {result.header.get('key')}")

        if args.check_custody:
            from ..oracle import IdRegistryResolver, check_custody, make_web3
            resolver = IdRegistryResolver(make_web3(args.rpc_url, timeout=config.oracle_timeout))
            is_custody = check_custody(result, resolver)
            print(f"Custody address matches IdRegistry: {'yes' if is_custody else 'NO'}")
            if not is_custody:
                return 1

        return 0 if result.valid else 1
    except JfsError as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        return 2


def cmd_batch(args: argparse.Namespace) -> int:
    try:
        config = _build_config(args)
    except JfsError as e:
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    loaded = []
    rows = []
    all_valid = True
    for source in args.files:
        try:
            loaded.append((source, load_envelope(source)))
        except (JfsError, OSError) as e:
            rows.append([source, "-", "-", f"ERROR ({type(e).__name__})"])
            all_valid = False

    with open_verifier(args, config) as verifier:
        outcomes = verify_many([envelope for _, envelope in loaded], verifier)
    for (source, _), outcome in zip(loaded, outcomes):
        if outcome.error is not None:
            rows.append([source, "-", "-", f"ERROR ({type(outcome.error).__name__})"])
            all_valid = False
            continue
        result = outcome.result
        rows.append([
            source,
            result.header.get("fid"),
            _domain(result),
            "valid" if result.valid else "INVALID",
        ])
        all_valid = all_valid and result.valid

    print(tabulate(rows, headers=["Source", "FID", "Domain", "Result"], tablefmt="grid"))
    return 0 if all_valid else 1


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--encoding", choices=[e.value for e in SignatureEncoding], default=None,
                   help="Signature segment encoding (default from JFS_SIGNATURE_ENCODING or raw_65)")
    p.add_argument("--allow-any-type", action="store_true",
                   help="Skip the header type == 'custody' check")
    p.add_argument("--env", dest="env_file", default=None, help="Path to .env file to load")
    p.add_argument("--use-oracle", action="store_true",
                   help="Check signatures through an RPC node (supports ERC-1271 wallets)")
    p.add_argument("--rpc-url", dest="rpc_url", default=None, help="JSON-RPC URL (default $RPC_URL)")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jfs-verify", description="Verify JSON Farcaster Signatures")
    sub = parser.add_subparsers(dest="command")

    p_verify = sub.add_parser("verify", help="Verify one envelope (compact string or JSON file)")
    p_verify.add_argument("envelope", help="Compact JFS string or path to a manifest / envelope JSON file")
    p_verify.add_argument("--check-custody", action="store_true",
                          help="Also require the key to be the fid's custody address in IdRegistry")
    _add_common(p_verify)
    p_verify.set_defaults(func=cmd_verify)

    p_batch = sub.add_parser("batch", help="Verify several manifests; failures are reported per file")
    p_batch.add_argument("files", nargs="+", help="Manifest / envelope files")
    _add_common(p_batch)
    p_batch.set_defaults(func=cmd_batch)

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
