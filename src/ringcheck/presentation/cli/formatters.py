from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

from ringcheck.application.verifier import VerificationOutcome
from ringcheck.domain.scenarios import Scenario
from ringcheck.infrastructure.codec.json_codec import to_jsonable

__all__ = [
    "dataclass_to_dict",
    "scenario_to_dict",
    "outcome_to_dict",
    "human_outcome",
]


def dataclass_to_dict(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: dataclass_to_dict(v) for k, v in asdict(obj).items()}
    if isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(i) for i in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(dataclass_to_dict(i) for i in obj)
    if isinstance(obj, dict):
        return {k: dataclass_to_dict(v) for k, v in obj.items()}
    return to_jsonable(obj)


def scenario_to_dict(index: int, scenario: Scenario) -> dict[str, Any]:
    return {
        "index": index,
        "description": scenario.description,
        "orders": len(scenario.orders),
        "rings": [list(r) for r in scenario.rings],
        "tokens": scenario.token_symbols(),
    }


def outcome_to_dict(outcome: VerificationOutcome) -> dict[str, Any]:
    return {
        "scenario": outcome.scenario,
        "status": outcome.status,
        "reason": outcome.reason,
        "error_type": outcome.error_type,
        "path": outcome.path,
        "transfers": outcome.transfers,
        "checkpoint_block": outcome.state.checkpoint_block,
    }


def human_outcome(outcome: VerificationOutcome) -> str:
    if outcome.passed:
        return f"[PASS] {outcome.scenario}"
    return f"[FAIL] {outcome.scenario}: {outcome.error_type}: {outcome.reason}"
