"""Canonical total order over transfer records.

Neither the simulator nor the event log guarantees an emission order, so both
transfer lists are sorted with this order before they are compared
position by position. Duplicate transfers are kept: after sorting, equal
multisets produce equal lists.
"""
from __future__ import annotations

from collections.abc import Iterable
from functools import cmp_to_key

from ringcheck.domain.models import TransferRecord

__all__ = ["transfer_sort_key", "compare_transfers", "sort_transfers"]


def transfer_sort_key(t: TransferRecord) -> tuple[str, str, str, int]:
    """Lexicographic key: token, sender, recipient (case-sensitive), then amount."""
    return (t.token, t.sender, t.recipient, int(t.amount))


def compare_transfers(a: TransferRecord, b: TransferRecord) -> int:
    """Three-way comparison: -1, 0 or 1. Returns 0 only for identical records."""
    ka, kb = transfer_sort_key(a), transfer_sort_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def sort_transfers(transfers: Iterable[TransferRecord]) -> list[TransferRecord]:
    """Return a new list in canonical order; the input is left untouched."""
    return sorted(transfers, key=cmp_to_key(compare_transfers))
