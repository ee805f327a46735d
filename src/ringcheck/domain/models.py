from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import IntEnum
from typing import Any

__all__ = [
    "SignAlgorithm",
    "OrderDescriptor",
    "Ring",
    "SettlementBatch",
    "TransferRecord",
    "BATCH_SKIP_FIELDS",
    "ORDER_DERIVED_FIELDS",
    "record_fields",
]

Ring = tuple[int, ...]


class SignAlgorithm(IntEnum):
    """Signature scheme used for order or ring signatures (wire values)."""

    ETHEREUM = 0
    EIP712 = 1
    NONE = 255


@dataclass(frozen=True, slots=True)
class OrderDescriptor:
    """A single resting order.

    Input fields describe what the order owner signed. Derived fields only exist
    after simulation or on-chain resolution and are listed in
    ``ORDER_DERIVED_FIELDS``; the structural diff never compares them.
    """

    # input fields
    token_s: str
    token_b: str
    amount_s: int
    amount_b: int
    owner: str | None = None
    lrc_fee: int | None = None
    valid_since: int | None = None
    valid_until: int | None = None
    all_or_none: bool | None = None
    wallet_addr: str | None = None
    wallet_split_percentage: int | None = None
    token_recipient: str | None = None
    dual_auth_addr: str | None = None
    broker: str | None = None
    order_interceptor: str | None = None
    sig: str | None = None
    dual_auth_sig: str | None = None

    # derived fields
    max_amount_s: int | None = None
    max_amount_b: int | None = None
    fill_amount_s: int | None = None
    fill_amount_b: int | None = None
    fill_amount_lrc_fee: int | None = None
    split_s: int | None = None
    broker_interceptor: str | None = None
    valid: bool | None = None
    hash: str | None = None
    delegate_contract: str | None = None
    sign_algorithm: SignAlgorithm | None = None
    dual_auth_sign_algorithm: SignAlgorithm | None = None
    index: int | None = None
    lrc_address: str | None = None

    # keys carried by a decoded record that the schema does not declare
    extras: dict[str, Any] = field(default_factory=dict)

    def with_updates(self, **changes: Any) -> OrderDescriptor:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class SettlementBatch:
    """Top-level settlement description: rings over an order list plus context."""

    rings: tuple[Ring, ...]
    orders: tuple[OrderDescriptor, ...]
    fee_recipient: str | None = None
    transaction_origin: str | None = None
    miner: str | None = None
    description: str | None = None
    sign_algorithm: SignAlgorithm | None = None
    hash: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    def with_updates(self, **changes: Any) -> SettlementBatch:
        return replace(self, **changes)


@dataclass(frozen=True, slots=True, order=True)
class TransferRecord:
    """One token movement: (token, sender, recipient, amount in base units)."""

    token: str
    sender: str
    recipient: str
    amount: int


# Free-text description, signing algorithm choice and the computed content hash
# are absent or regenerated on the decoded side.
BATCH_SKIP_FIELDS: frozenset[str] = frozenset({"description", "sign_algorithm", "hash"})

# Fields that exist only after simulation or on-chain resolution.
ORDER_DERIVED_FIELDS: frozenset[str] = frozenset(
    {
        "max_amount_s",
        "max_amount_b",
        "fill_amount_s",
        "fill_amount_b",
        "fill_amount_lrc_fee",
        "split_s",
        "broker_interceptor",
        "valid",
        "hash",
        "delegate_contract",
        "sign_algorithm",
        "dual_auth_sign_algorithm",
        "index",
        "lrc_address",
    }
)


def record_fields(record: OrderDescriptor | SettlementBatch) -> dict[str, Any]:
    """Flatten a record into ``{field_name: value}`` including undeclared extras.

    Declared fields win over an extra with the same name.
    """
    out: dict[str, Any] = dict(record.extras)
    for f in fields(record):
        if f.name == "extras":
            continue
        out[f.name] = getattr(record, f.name)
    return out
