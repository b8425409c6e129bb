#!/usr/bin/env python3
"""
Allows running the verifier with: python -m jfs_verifier
"""

from .cli.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
