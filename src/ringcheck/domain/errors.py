"""Verification error taxonomy.

Every error is fatal to the scenario that raised it. Errors carry the
identifying path of the offending entity (field name, ring/order/transfer index
or token address) so a failed run can be inspected without re-running it.

Hierarchy:
- VerificationError
  - StructuralMismatch
    - SerializationMismatch
  - EventRetrievalFailure
  - TransferSetMismatch
    - ToleranceViolation
- ScenarioError (invalid scenario configuration, raised before any ledger call)
"""
from __future__ import annotations

from typing import Any

__all__ = [
    "VerificationError",
    "StructuralMismatch",
    "SerializationMismatch",
    "EventRetrievalFailure",
    "TransferSetMismatch",
    "ToleranceViolation",
    "ScenarioError",
]


class VerificationError(Exception):
    """Base class for every mismatch detected by the oracle.

    ``path`` identifies the offending entity, e.g. ``orders[1].amount_s``,
    ``rings[0][2]`` or ``transfers[3].amount``. Empty when the mismatch concerns
    a whole collection.
    """

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class StructuralMismatch(VerificationError):
    """Two batch descriptions differ on a compared field, ring or order."""

    def __init__(self, message: str, *, path: str, left: Any = None, right: Any = None) -> None:
        super().__init__(message, path=path)
        self.left = left
        self.right = right


class SerializationMismatch(StructuralMismatch):
    """Encode/decode round-trip altered the batch during the self-check phase."""


class EventRetrievalFailure(VerificationError):
    """Transfer events for a token could not be retrieved or were malformed."""

    def __init__(self, message: str, *, token: str) -> None:
        super().__init__(message, path=token)
        self.token = token


class TransferSetMismatch(VerificationError):
    """Predicted and observed transfer multisets differ after canonical sorting."""


class ToleranceViolation(TransferSetMismatch):
    """Matching transfer pair differs in amount beyond the configured precision."""


class ScenarioError(Exception):
    """Scenario configuration is invalid (unknown token symbol, bad ring index)."""
