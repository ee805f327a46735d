from __future__ import annotations

from dataclasses import dataclass, field, replace

from ringcheck.domain.errors import ScenarioError
from ringcheck.domain.models import Ring, SignAlgorithm

__all__ = ["OrderSpec", "Scenario", "Participants", "RuntimeContext", "RunState"]


@dataclass(frozen=True, slots=True)
class OrderSpec:
    """Order as written in a scenario: tokens by symbol, owner by role index.

    Unset optional fields receive defaults while the scenario is described.
    """

    token_s: str
    token_b: str
    amount_s: int
    amount_b: int
    lrc_fee: int | None = None
    all_or_none: bool | None = None
    dual_auth_sign_algorithm: SignAlgorithm | None = None
    dual_auth_addr: str | None = None
    owner_index: int | None = None
    valid_since: int | None = None
    valid_until: int | None = None
    wallet_addr: str | None = None
    wallet_split_percentage: int | None = None
    token_recipient: str | None = None
    broker: str | None = None
    order_interceptor: str | None = None


@dataclass(frozen=True, slots=True)
class Scenario:
    """One fixed test case: ring topology over a list of orders."""

    description: str
    orders: tuple[OrderSpec, ...]
    rings: tuple[Ring, ...]
    sign_algorithm: SignAlgorithm = SignAlgorithm.ETHEREUM

    def __post_init__(self) -> None:
        if not self.orders:
            raise ScenarioError(f"Scenario '{self.description}' has no orders")
        for r, ring in enumerate(self.rings):
            if not ring:
                raise ScenarioError(f"Scenario '{self.description}': ring {r} is empty")
            for idx in ring:
                if not 0 <= idx < len(self.orders):
                    raise ScenarioError(
                        f"Scenario '{self.description}': ring {r} references order {idx} "
                        f"but only {len(self.orders)} orders exist"
                    )
        for o, spec in enumerate(self.orders):
            if spec.amount_s < 0 or spec.amount_b < 0:
                raise ScenarioError(f"Scenario '{self.description}': order {o} has a negative amount")

    def token_symbols(self) -> list[str]:
        """Token symbols traded in this scenario, first-seen order."""
        return list(dict.fromkeys(s for spec in self.orders for s in (spec.token_s, spec.token_b)))


@dataclass(frozen=True, slots=True)
class Participants:
    """Funded accounts and their roles for a run."""

    miner: str
    transaction_origin: str
    fee_recipient: str
    order_owners: tuple[str, ...]
    dual_auth_addrs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.order_owners:
            raise ScenarioError("At least one order owner is required")


@dataclass(frozen=True, slots=True)
class RuntimeContext:
    """Ledger facts captured once before the first scenario."""

    block_number: int
    block_timestamp: int
    trade_delegate_address: str
    lrc_address: str
    wallet_split_percentage: int = 0
    token_registry_address: str | None = None
    order_registry_address: str | None = None
    miner_registry_address: str | None = None
    order_broker_registry_address: str | None = None
    miner_broker_registry_address: str | None = None


@dataclass(frozen=True, slots=True)
class RunState:
    """State carried from one scenario to the next within a run.

    ``checkpoint_block`` is the first block whose Transfer events belong to the
    next scenario; ``funded_accounts`` lists owners whose balances were topped up.
    """

    checkpoint_block: int = 0
    funded_accounts: frozenset[str] = field(default_factory=frozenset)

    def advance_past(self, block_number: int) -> RunState:
        return replace(self, checkpoint_block=max(self.checkpoint_block, block_number + 1))

    def with_funded(self, *accounts: str) -> RunState:
        return replace(self, funded_accounts=self.funded_accounts | frozenset(accounts))
