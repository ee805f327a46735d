"""Settlement verifier: runs one scenario through four strictly sequential phases.

1. describe       build the SettlementBatch and top up owner balances
2. self-check     encode, let the simulator decode, diff against the described batch
3. simulate       predicted transfers from the decoded batch
4. reconcile      submit, harvest Transfer events since the checkpoint, compare

Each phase awaits its ledger calls in order; only the per-token event queries
inside the harvest run concurrently. The first mismatch ends the scenario.
Scenarios share ledger balances, so ``verify_all`` runs them one after another
and threads the ``RunState`` returned by each into the next.
"""
from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from ringcheck.application.diff import diff_batches
from ringcheck.application.harvest import harvest_transfers
from ringcheck.application.ports import (
    LedgerBackend,
    SettlementSimulator,
    SimulationReport,
    SubmissionEncoder,
    TokenRegistry,
)
from ringcheck.application.reconcile import assert_transfers_match
from ringcheck.domain.errors import (
    ScenarioError,
    SerializationMismatch,
    VerificationError,
)
from ringcheck.domain.models import OrderDescriptor, SettlementBatch, SignAlgorithm
from ringcheck.domain.scenarios import Participants, RunState, RuntimeContext, Scenario
from ringcheck.infrastructure.config.settings import get_settings
from ringcheck.infrastructure.logging.config import scenario_context

__all__ = ["VerificationOutcome", "SettlementVerifier", "capture_context"]

log = structlog.stdlib.get_logger(__name__)


async def capture_context(
    ledger: LedgerBackend,
    registry: TokenRegistry,
    trade_delegate_address: str,
    *,
    block_timestamp: int = 0,
    wallet_split_percentage: int = 0,
    **registry_addresses: str | None,
) -> RuntimeContext:
    """Read the ledger facts every scenario of a run shares.

    The fee token is resolved by its symbol (``FEE_TOKEN_SYMBOL``) through the
    token registry.
    """
    context = RuntimeContext(
        block_number=await ledger.block_number(),
        block_timestamp=block_timestamp,
        trade_delegate_address=trade_delegate_address,
        lrc_address=await registry.address_of(get_settings().fee_token_symbol),
        wallet_split_percentage=wallet_split_percentage,
        **registry_addresses,
    )
    log.info("context_captured", block_number=context.block_number, lrc_address=context.lrc_address)
    return context


@dataclass(slots=True)
class VerificationOutcome:
    """PASS or FAIL for one scenario, with the run state to hand to the next one."""

    scenario: str
    passed: bool
    state: RunState
    reason: str | None = None
    error_type: str | None = None
    path: str | None = None
    transfers: int = 0

    @property
    def status(self) -> str:
        return "PASS" if self.passed else "FAIL"


@dataclass(slots=True)
class SettlementVerifier:
    """Differential check of simulated versus executed settlement.

    ``tokens`` lists every token contract address whose Transfer events are
    harvested after a submission (traded tokens and the fee token).
    """

    simulator: SettlementSimulator
    encoder: SubmissionEncoder
    ledger: LedgerBackend
    registry: TokenRegistry
    context: RuntimeContext
    participants: Participants
    tokens: Sequence[str]
    precision: int | None = None
    _last_report: SimulationReport | None = field(default=None, init=False, repr=False)

    # --- phase 1 ---------------------------------------------------------

    async def _describe_order(self, index: int, scenario: Scenario) -> OrderDescriptor:
        spec = scenario.orders[index]
        owners = self.participants.order_owners
        owner_index = spec.owner_index if spec.owner_index is not None else index % len(owners)
        if not 0 <= owner_index < len(owners):
            raise ScenarioError(f"Order {index}: owner index {owner_index} out of range")
        owner = owners[owner_index]

        sign_algorithm = spec.dual_auth_sign_algorithm
        if sign_algorithm is None:
            sign_algorithm = SignAlgorithm.ETHEREUM
        dual_auth_addr = spec.dual_auth_addr
        if dual_auth_addr is None and sign_algorithm is not SignAlgorithm.NONE and self.participants.dual_auth_addrs:
            dual_auth_addr = self.participants.dual_auth_addrs[owner_index % len(self.participants.dual_auth_addrs)]

        return OrderDescriptor(
            token_s=await self.registry.address_of(spec.token_s),
            token_b=await self.registry.address_of(spec.token_b),
            amount_s=spec.amount_s,
            amount_b=spec.amount_b,
            owner=owner,
            lrc_fee=spec.lrc_fee if spec.lrc_fee is not None else get_settings().default_lrc_fee,
            valid_since=spec.valid_since,
            valid_until=spec.valid_until,
            all_or_none=bool(spec.all_or_none),
            wallet_addr=spec.wallet_addr,
            wallet_split_percentage=spec.wallet_split_percentage,
            token_recipient=spec.token_recipient,
            dual_auth_addr=dual_auth_addr,
            broker=spec.broker,
            order_interceptor=spec.order_interceptor,
            dual_auth_sign_algorithm=sign_algorithm,
        )

    async def describe(self, scenario: Scenario, state: RunState) -> tuple[SettlementBatch, RunState]:
        """Build the batch and credit each owner with amount_s and the fee.

        Balances are only ever increased, so repeated scenarios never run dry.
        """
        orders: list[OrderDescriptor] = []
        for i in range(len(scenario.orders)):
            order = await self._describe_order(i, scenario)
            await self.ledger.credit(order.owner, order.token_s, order.amount_s)  # type: ignore[arg-type]
            await self.ledger.credit(order.owner, self.context.lrc_address, order.lrc_fee)  # type: ignore[arg-type]
            state = state.with_funded(order.owner)  # type: ignore[arg-type]
            orders.append(order)

        batch = SettlementBatch(
            rings=tuple(tuple(r) for r in scenario.rings),
            orders=tuple(orders),
            fee_recipient=self.participants.fee_recipient,
            transaction_origin=self.participants.transaction_origin,
            miner=self.participants.miner,
            description=scenario.description,
            sign_algorithm=scenario.sign_algorithm,
        )
        log.debug("described", orders=len(batch.orders), rings=len(batch.rings))
        return batch, state

    # --- phase 2 ---------------------------------------------------------

    def self_check(self, batch: SettlementBatch) -> tuple[bytes, SettlementBatch]:
        """Round-trip the batch through encoder and simulator parser, then diff.

        The raised error points at the first mismatch and lists every
        mismatching path.
        """
        payload = self.encoder.encode(batch)
        decoded = self.simulator.deserialize(
            payload, self.participants.transaction_origin, self.context.trade_delegate_address
        )
        mismatches = diff_batches(decoded, batch)
        if mismatches:
            paths = [m.path for m in mismatches]
            log.error("self_check_failed", mismatches=paths)
            first = mismatches[0]
            raise SerializationMismatch(
                f"{first.message} [mismatching: {', '.join(paths)}]",
                path=first.path,
                left=first.left,
                right=first.right,
            )
        log.debug("self_check_passed", payload_bytes=len(payload))
        return payload, decoded

    # --- phase 3 ---------------------------------------------------------

    async def simulate(self, decoded: SettlementBatch) -> SimulationReport:
        report = await self.simulator.simulate(decoded, self.context)
        self._last_report = report
        log.debug("simulated", predicted_transfers=len(report.transfers), fills=report.fills)
        return report

    # --- phase 4 ---------------------------------------------------------

    async def execute_and_reconcile(self, payload: bytes, report: SimulationReport, state: RunState) -> RunState:
        """Submit, harvest events since the checkpoint and compare with the prediction.

        The checkpoint advances past the submission block only after the
        comparison succeeded.
        """
        receipt = await self.ledger.submit(payload, self.participants.transaction_origin)
        observed = await harvest_transfers(self.ledger, self.tokens, state.checkpoint_block)
        assert_transfers_match(observed, report.transfers, self.precision)
        log.debug("reconciled", block=receipt.block_number, transfers=len(observed))
        return state.advance_past(receipt.block_number)

    # --- entry points ----------------------------------------------------

    async def check(self, scenario: Scenario, state: RunState) -> RunState:
        """Run all four phases; raise on the first mismatch, return the next state."""
        batch, state = await self.describe(scenario, state)
        payload, decoded = self.self_check(batch)
        report = await self.simulate(decoded)
        return await self.execute_and_reconcile(payload, report, state)

    async def verify(self, scenario: Scenario, state: RunState | None = None) -> VerificationOutcome:
        """Verify a single scenario and report PASS or FAIL(reason)."""
        state = state or RunState()
        self._last_report = None
        with scenario_context(scenario=scenario.description, checkpoint_block=state.checkpoint_block):
            try:
                next_state = await self.check(scenario, state)
            except (VerificationError, ScenarioError) as exc:
                log.error("scenario_failed", error_type=type(exc).__name__, reason=str(exc))
                return VerificationOutcome(
                    scenario=scenario.description,
                    passed=False,
                    state=state,
                    reason=str(exc),
                    error_type=type(exc).__name__,
                    path=getattr(exc, "path", None) or None,
                )
            log.info("scenario_passed")
        transfers = len(self._last_report.transfers) if self._last_report else 0
        return VerificationOutcome(scenario=scenario.description, passed=True, state=next_state, transfers=transfers)

    async def verify_all(self, scenarios: Iterable[Scenario], state: RunState | None = None) -> list[VerificationOutcome]:
        """Verify scenarios in order, stopping at the first failure."""
        outcomes: list[VerificationOutcome] = []
        current = state or RunState()
        for scenario in scenarios:
            outcome = await self.verify(scenario, current)
            outcomes.append(outcome)
            if not outcome.passed:
                break
            current = outcome.state
        return outcomes
