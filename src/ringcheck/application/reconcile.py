from __future__ import annotations

from collections.abc import Iterable

import structlog

from ringcheck.domain.errors import TransferSetMismatch
from ringcheck.domain.models import TransferRecord
from ringcheck.domain.ordering import sort_transfers
from ringcheck.domain.precision import assert_amounts_equal, to_decimal

__all__ = ["assert_transfers_match"]

log = structlog.stdlib.get_logger(__name__)

_EXACT_FIELDS = ("token", "sender", "recipient")


def _log_transfers(label: str, transfers: list[TransferRecord]) -> None:
    for t in transfers:
        log.debug(label, token=t.token, sender=t.sender, recipient=t.recipient, amount=str(to_decimal(t.amount)))


def assert_transfers_match(
    observed: Iterable[TransferRecord],
    predicted: Iterable[TransferRecord],
    precision: int | None = None,
) -> list[tuple[TransferRecord, TransferRecord]]:
    """Compare observed and predicted transfers as multisets.

    Both sides are sorted canonically, then lengths must match and every
    position must agree: token, sender and recipient exactly, amount within
    ``precision`` decimal places. Returns the matched pairs.

    Raises:
        TransferSetMismatch: length or address field differs.
        ToleranceViolation: amount differs beyond the precision.
    """
    observed_sorted = sort_transfers(observed)
    predicted_sorted = sort_transfers(predicted)
    _log_transfers("predicted_transfer", predicted_sorted)
    _log_transfers("observed_transfer", observed_sorted)

    if len(observed_sorted) != len(predicted_sorted):
        raise TransferSetMismatch(
            f"Number of transfers does not match: observed {len(observed_sorted)} "
            f"!= predicted {len(predicted_sorted)}",
            path="transfers",
        )

    pairs = list(zip(observed_sorted, predicted_sorted, strict=True))
    for i, (obs, pred) in enumerate(pairs):
        for name in _EXACT_FIELDS:
            ov, pv = getattr(obs, name), getattr(pred, name)
            if ov != pv:
                raise TransferSetMismatch(
                    f"transfers[{i}].{name}: observed {ov} != predicted {pv}",
                    path=f"transfers[{i}].{name}",
                )
        assert_amounts_equal(obs.amount, pred.amount, precision, path=f"transfers[{i}].amount")
    return pairs
