"""Structural diff between two settlement batch descriptions.

Used by the self-check phase: the freshly described batch and the batch the
simulator decoded from the submission payload must describe the same
settlement intent. Comparison is blacklist based: every field present on
either side is compared unless it is declared in ``BATCH_SKIP_FIELDS`` or
``ORDER_DERIVED_FIELDS``, so fields added later are checked by default.
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from ringcheck.domain.errors import StructuralMismatch
from ringcheck.domain.models import (
    BATCH_SKIP_FIELDS,
    ORDER_DERIVED_FIELDS,
    OrderDescriptor,
    SettlementBatch,
    record_fields,
)

__all__ = ["FieldMismatch", "diff_batches", "assert_batches_equal"]


@dataclass(frozen=True, slots=True)
class FieldMismatch:
    """A single difference between two batch descriptions."""

    path: str
    message: str
    left: Any = None
    right: Any = None

    def to_error(self) -> StructuralMismatch:
        return StructuralMismatch(self.message, path=self.path, left=self.left, right=self.right)


def _ordered_union(left: dict[str, Any], right: dict[str, Any]) -> list[str]:
    # keys of both sides, left order first, without duplicates
    return list(dict.fromkeys([*left, *right]))


def _diff_rings(a: Sequence[Sequence[int]], b: Sequence[Sequence[int]]) -> Iterator[FieldMismatch]:
    if len(a) != len(b):
        yield FieldMismatch("rings", f"Number of rings does not match: {len(a)} != {len(b)}", len(a), len(b))
        return
    for r, (ring_a, ring_b) in enumerate(zip(a, b, strict=True)):
        if len(ring_a) != len(ring_b):
            yield FieldMismatch(
                f"rings[{r}]",
                f"Number of orders in ring {r} does not match: {len(ring_a)} != {len(ring_b)}",
                len(ring_a),
                len(ring_b),
            )
            continue
        for o, (idx_a, idx_b) in enumerate(zip(ring_a, ring_b, strict=True)):
            if idx_a != idx_b:
                yield FieldMismatch(
                    f"rings[{r}][{o}]",
                    f"Order indices in ring {r} do not match at position {o}: {idx_a} != {idx_b}",
                    idx_a,
                    idx_b,
                )


def _diff_order(o: int, a: OrderDescriptor, b: OrderDescriptor) -> Iterator[FieldMismatch]:
    fa, fb = record_fields(a), record_fields(b)
    for key in _ordered_union(fa, fb):
        if key in ORDER_DERIVED_FIELDS:
            continue
        va, vb = fa.get(key), fb.get(key)
        if va != vb:
            yield FieldMismatch(
                f"orders[{o}].{key}",
                f"Order {o} property '{key}' does not match: {va!r} != {vb!r}",
                va,
                vb,
            )


def _diff_orders(a: Sequence[OrderDescriptor], b: Sequence[OrderDescriptor]) -> Iterator[FieldMismatch]:
    if len(a) != len(b):
        yield FieldMismatch("orders", f"Number of orders does not match: {len(a)} != {len(b)}", len(a), len(b))
        return
    for o, (order_a, order_b) in enumerate(zip(a, b, strict=True)):
        yield from _diff_order(o, order_a, order_b)


def _iter_mismatches(a: SettlementBatch, b: SettlementBatch) -> Iterator[FieldMismatch]:
    fa, fb = record_fields(a), record_fields(b)
    for key in _ordered_union(fa, fb):
        if key in BATCH_SKIP_FIELDS:
            continue
        if key == "rings":
            yield from _diff_rings(a.rings, b.rings)
        elif key == "orders":
            yield from _diff_orders(a.orders, b.orders)
        else:
            va, vb = fa.get(key), fb.get(key)
            if va != vb:
                yield FieldMismatch(key, f"Batch property '{key}' does not match: {va!r} != {vb!r}", va, vb)


def diff_batches(a: SettlementBatch, b: SettlementBatch) -> list[FieldMismatch]:
    """Return every mismatch between ``a`` and ``b`` (empty when equivalent)."""
    return list(_iter_mismatches(a, b))


def assert_batches_equal(a: SettlementBatch, b: SettlementBatch) -> None:
    """Raise ``StructuralMismatch`` for the first differing field, ring or order."""
    for mismatch in _iter_mismatches(a, b):
        raise mismatch.to_error()
