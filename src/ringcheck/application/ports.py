from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ringcheck.domain.models import SettlementBatch, TransferRecord
from ringcheck.domain.scenarios import RuntimeContext

__all__ = [
    "TransferEvent",
    "Receipt",
    "SimulationReport",
    "SettlementSimulator",
    "SubmissionEncoder",
    "LedgerBackend",
    "TokenRegistry",
]

# Raw Transfer event as returned by a ledger: {"from": ..., "to": ..., "value": ...}.
TransferEvent = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Receipt:
    """Outcome of a submitted batch: the block that included it."""

    block_number: int
    transaction_hash: str | None = None


@dataclass(slots=True)
class SimulationReport:
    """Prediction produced by the settlement simulator.

    ``fills`` maps order index to simulator-specific fill details (fill
    amounts, fees, splits); the oracle only logs it.
    """

    transfers: list[TransferRecord]
    fills: dict[int, dict[str, Any]] = field(default_factory=dict)


@runtime_checkable
class SettlementSimulator(Protocol):
    """Off-chain settlement oracle consumed as a black box.

    ``simulate`` receives the run context (block number and timestamp, registry
    addresses, wallet split percentage) the settlement is evaluated against.
    """

    def deserialize(self, payload: bytes, transaction_origin: str, delegate: str) -> SettlementBatch: ...
    async def simulate(self, batch: SettlementBatch, context: RuntimeContext) -> SimulationReport: ...


@runtime_checkable
class SubmissionEncoder(Protocol):
    """Encodes a batch into the payload accepted by the exchange."""

    def encode(self, batch: SettlementBatch) -> bytes: ...


@runtime_checkable
class LedgerBackend(Protocol):
    """Execution ledger: submission, Transfer log queries and balance top-ups.

    Every call is an I/O boundary; callers await them strictly in order.
    """

    async def block_number(self) -> int: ...
    async def submit(self, payload: bytes, sender: str) -> Receipt: ...
    async def query_transfer_events(self, token: str, from_block: int) -> list[TransferEvent]: ...
    async def credit(self, account: str, token: str, amount: int) -> None: ...


@runtime_checkable
class TokenRegistry(Protocol):
    """Resolves token symbols (``"LRC"``, ``"WETH"``) to contract addresses."""

    async def address_of(self, symbol: str) -> str: ...
