"""Batch verification with per-envelope failure isolation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .errors import JfsError
from .envelope import Envelope
from .verifier import SignatureVerifier, VerificationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchOutcome:
    """Either ``result`` or ``error`` is set, never both."""

    index: int
    result: Optional[VerificationResult] = None
    error: Optional[JfsError] = None

    @property
    def valid(self) -> bool:
        return self.result is not None and self.result.valid


def verify_many(
    envelopes: Iterable[Envelope],
    verifier: Optional[SignatureVerifier] = None,
) -> List[BatchOutcome]:
    """Verify each envelope independently.

    A :class:`JfsError` raised for one envelope is recorded on its outcome and
    the remaining envelopes are still verified.
    """
    verifier = verifier or SignatureVerifier()
    outcomes: List[BatchOutcome] = []
    for index, envelope in enumerate(envelopes):
        try:
            result = verifier.verify_envelope(envelope)
        except JfsError as exc:
            logger.debug("envelope %d rejected: %s: %s", index, type(exc).__name__, exc)
            outcomes.append(BatchOutcome(index=index, error=exc))
        else:
            outcomes.append(BatchOutcome(index=index, result=result))
    return outcomes
