"""Encoding and hashing helpers shared by the codec and the verifier."""
