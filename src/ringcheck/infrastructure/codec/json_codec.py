"""Deterministic JSON submission payload.

Reference encoder/decoder for in-memory runs and self-check tests:
- encode(batch): input fields only (derived order fields, the description,
  the content hash and the transaction origin are never written), integers
  kept as JSON numbers, enum members as their wire values, sorted keys,
  compact separators.
- decode(payload, transaction_origin, delegate): rebuilds a SettlementBatch;
  the transaction origin and delegate come from the submission context, as on
  chain. Unknown keys land in ``extras`` so they are still compared.

Does not depend on the order of keys in the payload.
"""
from __future__ import annotations

import json as _json
from dataclasses import fields
from enum import Enum
from typing import Any

from ringcheck.domain.models import (
    ORDER_DERIVED_FIELDS,
    OrderDescriptor,
    SettlementBatch,
    SignAlgorithm,
)

__all__ = ["JsonSubmissionCodec", "to_jsonable"]

_BATCH_NOT_ENCODED = frozenset({"description", "hash", "transaction_origin", "rings", "orders", "extras"})
_ORDER_FIELDS = frozenset(f.name for f in fields(OrderDescriptor)) - {"extras"}
_BATCH_FIELDS = frozenset(f.name for f in fields(SettlementBatch)) - {"extras"}


def to_jsonable(obj: Any) -> Any:
    """Convert enums, tuples and nested containers to JSON-safe forms."""
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    return obj


def _encode_order(order: OrderDescriptor) -> dict[str, Any]:
    out = {k: to_jsonable(v) for k, v in order.extras.items()}
    for name in _ORDER_FIELDS - ORDER_DERIVED_FIELDS:
        value = getattr(order, name)
        if value is not None:
            out[name] = to_jsonable(value)
    # dual-auth algorithm travels with the order even though it is resolved on decode
    if order.dual_auth_sign_algorithm is not None:
        out["dual_auth_sign_algorithm"] = order.dual_auth_sign_algorithm.value
    return out


def _decode_order(index: int, raw: dict[str, Any], delegate: str) -> OrderDescriptor:
    known = {k: v for k, v in raw.items() if k in _ORDER_FIELDS}
    extras = {k: v for k, v in raw.items() if k not in _ORDER_FIELDS}
    if "dual_auth_sign_algorithm" in known:
        known["dual_auth_sign_algorithm"] = SignAlgorithm(known["dual_auth_sign_algorithm"])
    known.update(index=index, delegate_contract=delegate)
    return OrderDescriptor(**known, extras=extras)


class JsonSubmissionCodec:
    """Encodes batches as JSON bytes and decodes them back."""

    def encode(self, batch: SettlementBatch) -> bytes:
        doc: dict[str, Any] = {k: to_jsonable(v) for k, v in batch.extras.items()}
        for name in _BATCH_FIELDS - _BATCH_NOT_ENCODED:
            value = getattr(batch, name)
            if value is not None:
                doc[name] = to_jsonable(value)
        doc["rings"] = [list(r) for r in batch.rings]
        doc["orders"] = [_encode_order(o) for o in batch.orders]
        return _json.dumps(doc, ensure_ascii=False, separators=(",", ":"), sort_keys=True).encode("utf-8")

    def decode(self, payload: bytes, transaction_origin: str, delegate: str) -> SettlementBatch:
        doc = _json.loads(payload.decode("utf-8"))
        if not isinstance(doc, dict):
            raise ValueError("Submission payload must be a JSON object")
        rings = tuple(tuple(int(i) for i in r) for r in doc.pop("rings", []))
        orders = tuple(_decode_order(i, o, delegate) for i, o in enumerate(doc.pop("orders", [])))
        known = {k: v for k, v in doc.items() if k in _BATCH_FIELDS}
        extras = {k: v for k, v in doc.items() if k not in _BATCH_FIELDS}
        if "sign_algorithm" in known:
            known["sign_algorithm"] = SignAlgorithm(known["sign_algorithm"])
        known["transaction_origin"] = transaction_origin
        return SettlementBatch(rings=rings, orders=orders, extras=extras, **known)

    # the simulator port spells decoding "deserialize"
    deserialize = decode
