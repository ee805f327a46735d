"""Application layer: structural diff, event harvesting, reconciliation and the verifier."""

from ringcheck.application.diff import FieldMismatch, assert_batches_equal, diff_batches
from ringcheck.application.harvest import harvest_transfers
from ringcheck.application.reconcile import assert_transfers_match
from ringcheck.application.verifier import SettlementVerifier, VerificationOutcome, capture_context

__all__ = [
    "FieldMismatch",
    "SettlementVerifier",
    "VerificationOutcome",
    "assert_batches_equal",
    "assert_transfers_match",
    "capture_context",
    "diff_batches",
    "harvest_transfers",
]
