"""End-to-end run of the shipped scenario set against the in-memory ledger."""
from __future__ import annotations

import pytest

from ringcheck.domain.scenarios import RunState
from ringcheck.infrastructure.inmemory.ledger import InMemoryLedger
from ringcheck.infrastructure.scenarios import builtin_scenarios

import fakes


@pytest.mark.asyncio
async def test_every_builtin_scenario_passes_in_sequence():
    verifier = fakes.make_verifier()
    scenarios = builtin_scenarios()
    state = RunState()
    for scenario in scenarios:
        outcome = await verifier.verify(scenario, state)
        assert outcome.passed, f"{scenario.description}: {outcome.reason}"
        assert outcome.state.checkpoint_block > state.checkpoint_block
        state = outcome.state
    assert state.funded_accounts == set(fakes.OWNERS)


@pytest.mark.asyncio
async def test_unrelated_transfers_before_checkpoint_are_ignored():
    verifier = fakes.make_verifier()
    ledger = verifier.ledger
    assert isinstance(ledger, InMemoryLedger)
    weth = fakes.TOKENS["WETH"]
    await ledger.credit("0xStranger", weth, 5)
    block = ledger.transfer(weth, "0xStranger", "0xOther", 5)

    outcomes = await verifier.verify_all(builtin_scenarios(), RunState().advance_past(block))
    assert all(o.passed for o in outcomes)


@pytest.mark.asyncio
async def test_sign_algorithm_and_description_do_not_affect_self_check():
    verifier = fakes.make_verifier(tamper=lambda b: b.with_updates(description=None, hash="0xfeed"))
    outcome = await verifier.verify(builtin_scenarios()[0])
    assert outcome.passed, outcome.reason
