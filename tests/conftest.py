"""Shared fixtures: envelopes signed on the fly with throwaway keys."""

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys

from jfs_verifier.config.settings import SignatureEncoding
from jfs_verifier.envelope import EnvelopeParts, encode_signature
from jfs_verifier.helpers.encoding import encode_json_segment
from jfs_verifier.helpers.eth_message import signing_input

# Test private keys (DO NOT USE IN PRODUCTION)
PRIVATE_KEY = "0x" + "1" * 64
OTHER_PRIVATE_KEY = "0x" + "2" * 64


def sign_parts(header_b64, payload_b64, private_key=PRIVATE_KEY):
    """Return the 65-byte personal_sign signature over ``header.payload``."""
    message = encode_defunct(primitive=signing_input(header_b64, payload_b64))
    return bytes(Account.sign_message(message, private_key).signature)


@pytest.fixture
def account():
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture
def other_account():
    return Account.from_key(OTHER_PRIVATE_KEY)


@pytest.fixture
def public_key():
    return keys.PrivateKey(bytes.fromhex(PRIVATE_KEY[2:])).public_key


@pytest.fixture
def custody_header(account):
    return {"fid": "1", "type": "custody", "key": account.address}


@pytest.fixture
def payload():
    return {"domain": "example.com"}


@pytest.fixture
def make_envelope():
    """Factory: ``make_envelope(header, payload, encoding=..., private_key=...)``."""

    def _make(header, payload, encoding=SignatureEncoding.RAW_65, private_key=PRIVATE_KEY):
        header_b64 = encode_json_segment(header)
        payload_b64 = encode_json_segment(payload)
        signature = sign_parts(header_b64, payload_b64, private_key)
        return EnvelopeParts(header_b64, payload_b64, encode_signature(signature, encoding))

    return _make


@pytest.fixture
def envelope(make_envelope, custody_header, payload):
    return make_envelope(custody_header, payload)


@pytest.fixture
def sign():
    return sign_parts


@pytest.fixture
def other_private_key():
    return OTHER_PRIVATE_KEY
