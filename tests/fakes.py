"""Test doubles for the external collaborators of the verifier.

The settlement model is small: in a ring every order sells
``min(amount_s, next.amount_b)`` of its token_s to the owner of the next order,
and pays its LRC fee pro rata to the fill. An all-or-none order that cannot be
filled completely zeroes the whole ring. The "contract" executor computes the
same model from the submitted payload but rounds fees up instead of down, so
its amounts drift by one base unit from the simulator's prediction.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ringcheck.application.ports import SimulationReport
from ringcheck.application.verifier import SettlementVerifier, capture_context
from ringcheck.domain.models import SettlementBatch, TransferRecord
from ringcheck.domain.scenarios import Participants, RuntimeContext
from ringcheck.infrastructure.codec.json_codec import JsonSubmissionCodec
from ringcheck.infrastructure.config.settings import BaseAppSettings
from ringcheck.infrastructure.inmemory.ledger import InMemoryLedger, InMemoryTokenRegistry

E18 = 10**18

TOKENS = {
    "WETH": "0xToken00000000000000000000000000000000WETH",
    "GTO": "0xToken000000000000000000000000000000000GTO",
    "REP": "0xToken000000000000000000000000000000000REP",
    "RDN": "0xToken000000000000000000000000000000000RDN",
    "LRC": "0xToken000000000000000000000000000000000LRC",
}

OWNERS = ("0xOwner1", "0xOwner2", "0xOwner3")
DUAL_AUTH = ("0xDual1", "0xDual2", "0xDual3")
MINER = "0xMiner"
ORIGIN = "0xOrigin"
DELEGATE = "0xTradeDelegate"


def make_participants() -> Participants:
    return Participants(
        miner=MINER,
        transaction_origin=ORIGIN,
        fee_recipient=MINER,
        order_owners=OWNERS,
        dual_auth_addrs=DUAL_AUTH,
    )


def make_context() -> RuntimeContext:
    return RuntimeContext(
        block_number=0,
        block_timestamp=1_700_000_000,
        trade_delegate_address=DELEGATE,
        lrc_address=TOKENS["LRC"],
        wallet_split_percentage=0,
    )


def _fee(lrc_fee: int, fill: int, amount_s: int, round_up: bool) -> int:
    if amount_s == 0:
        return 0
    num = lrc_fee * fill
    return -(-num // amount_s) if round_up else num // amount_s


def settle(batch: SettlementBatch, lrc_address: str, *, round_fee_up: bool = False) -> list[TransferRecord]:
    # order i buys token_b from order i+1, so order j sells token_s to order j-1
    transfers: list[TransferRecord] = []
    for ring in batch.rings:
        orders = [batch.orders[i] for i in ring]
        n = len(orders)
        sold = [min(orders[j].amount_s, orders[(j - 1) % n].amount_b) for j in range(n)]
        blocked = any(
            o.all_or_none and (sold[j] < o.amount_s or sold[(j + 1) % n] < o.amount_b)
            for j, o in enumerate(orders)
        )
        if blocked:
            continue
        for j, o in enumerate(orders):
            buyer = orders[(j - 1) % n]
            if sold[j] > 0:
                transfers.append(TransferRecord(o.token_s, o.owner, buyer.owner, sold[j]))
            fee = _fee(o.lrc_fee or 0, sold[j], o.amount_s, round_fee_up)
            if fee > 0:
                transfers.append(TransferRecord(lrc_address, o.owner, batch.fee_recipient, fee))
    return transfers


@dataclass
class FakeSimulator:
    """Simulator double; ``tamper`` may alter the decoded batch before it is returned.

    Fees are paid in the LRC token of the context passed to ``simulate``.
    """

    codec: JsonSubmissionCodec
    tamper: Callable[[SettlementBatch], SettlementBatch] | None = None
    simulated: list[SettlementBatch] = field(default_factory=list)
    contexts: list[RuntimeContext] = field(default_factory=list)

    def deserialize(self, payload: bytes, transaction_origin: str, delegate: str) -> SettlementBatch:
        batch = self.codec.decode(payload, transaction_origin, delegate)
        return self.tamper(batch) if self.tamper else batch

    async def simulate(self, batch: SettlementBatch, context: RuntimeContext) -> SimulationReport:
        self.simulated.append(batch)
        self.contexts.append(context)
        transfers = settle(batch, context.lrc_address)
        return SimulationReport(transfers=list(reversed(transfers)), fills={})


@dataclass
class ContractExecutor:
    """Stands in for the exchange contract behind ``InMemoryLedger.submit``."""

    codec: JsonSubmissionCodec
    lrc_address: str
    drop_last: bool = False
    extra: list[TransferRecord] = field(default_factory=list)

    def __call__(self, payload: bytes, sender: str) -> list[TransferRecord]:
        batch = self.codec.decode(payload, sender, DELEGATE)
        transfers = settle(batch, self.lrc_address, round_fee_up=True) + self.extra
        if self.drop_last and transfers:
            transfers = transfers[:-1]
        return transfers


def make_verifier(
    *,
    tamper: Callable[[SettlementBatch], SettlementBatch] | None = None,
    drop_last: bool = False,
    extra: list[TransferRecord] | None = None,
    ledger: InMemoryLedger | None = None,
) -> SettlementVerifier:
    codec = JsonSubmissionCodec()
    lrc = TOKENS["LRC"]
    registry = InMemoryTokenRegistry(TOKENS)
    if ledger is None:
        ledger = InMemoryLedger(ContractExecutor(codec, lrc, drop_last=drop_last, extra=list(extra or [])))
    return SettlementVerifier(
        simulator=FakeSimulator(codec, tamper=tamper),
        encoder=codec,
        ledger=ledger,
        registry=registry,
        context=make_context(),
        participants=make_participants(),
        tokens=registry.addresses(),
    )


async def build_harness(settings: BaseAppSettings) -> SettlementVerifier:
    """Harness factory for ``ringcheck verify --harness fakes:build_harness``."""
    verifier = make_verifier()
    verifier.context = await capture_context(verifier.ledger, verifier.registry, DELEGATE, block_timestamp=1_700_000_000)
    return verifier


def build_broken_harness(settings: BaseAppSettings) -> SettlementVerifier:
    return make_verifier(drop_last=True)
