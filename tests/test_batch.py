"""Batch verification isolates failures per envelope."""

import pytest

from jfs_verifier import (
    InvalidSignatureLength,
    MalformedEnvelope,
    SignatureVerifier,
    UnsupportedKeyType,
    verify_many,
)
from jfs_verifier.helpers.encoding import b64url_decode, b64url_encode


def test_one_bad_envelope_does_not_abort_the_rest(envelope, make_envelope, custody_header, payload, other_account):
    wrong_key = make_envelope(dict(custody_header, key=other_account.address), payload)
    app_key = make_envelope(dict(custody_header, type="app_key"), payload)
    truncated = envelope._replace(signature=b64url_encode(b64url_decode(envelope.signature)[:60]))

    outcomes = verify_many([
        envelope,
        "not-an-envelope",
        wrong_key,
        app_key,
        truncated,
        envelope.compact(),
    ])

    assert [o.index for o in outcomes] == list(range(6))
    assert [o.valid for o in outcomes] == [True, False, False, False, False, True]
    assert isinstance(outcomes[1].error, MalformedEnvelope)
    assert outcomes[2].error is None and outcomes[2].result.valid is False
    assert isinstance(outcomes[3].error, UnsupportedKeyType)
    assert isinstance(outcomes[4].error, InvalidSignatureLength)
    for outcome in outcomes:
        assert (outcome.result is None) != (outcome.error is None)


def test_empty_batch():
    assert verify_many([]) == []


def test_unexpected_errors_propagate(envelope):
    class BrokenVerifier(SignatureVerifier):
        def verify_envelope(self, envelope):
            raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        verify_many([envelope], BrokenVerifier())
