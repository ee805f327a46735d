from __future__ import annotations

import hashlib
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

from ringcheck.application.ports import LedgerBackend, Receipt, TokenRegistry, TransferEvent
from ringcheck.domain.errors import ScenarioError
from ringcheck.domain.models import TransferRecord

__all__ = ["SettlementExecutor", "InMemoryLedger", "InMemoryTokenRegistry"]

# Executes a submitted payload and returns the transfers it causes.
SettlementExecutor = Callable[[bytes, str], list[TransferRecord] | Awaitable[list[TransferRecord]]]


class InMemoryLedger(LedgerBackend):  # type: ignore[misc]
    """Single-process ledger with a block counter, balances and a Transfer log.

    Each submission or direct transfer mines one block. Balance top-ups change
    balances without mining and without emitting Transfer events, like a
    test token's ``addBalance``.
    """

    def __init__(self, executor: SettlementExecutor | None = None, start_block: int = 0) -> None:
        self._executor = executor
        self._block = start_block
        self._balances: dict[tuple[str, str], int] = defaultdict(int)
        self._log: list[tuple[int, TransferRecord]] = []
        self.failing_tokens: set[str] = set()

    async def block_number(self) -> int:  # noqa: D401
        return self._block

    async def credit(self, account: str, token: str, amount: int) -> None:  # noqa: D401
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        self._balances[(token, account)] += amount

    async def submit(self, payload: bytes, sender: str) -> Receipt:
        """Run the executor on ``payload`` and apply its transfers in one new block."""
        if self._executor is None:
            raise RuntimeError("InMemoryLedger has no settlement executor")
        result: Any = self._executor(payload, sender)
        if inspect.isawaitable(result):
            result = await result
        self._mine(list(result))
        return Receipt(block_number=self._block, transaction_hash="0x" + hashlib.sha256(payload).hexdigest())

    async def query_transfer_events(self, token: str, from_block: int) -> list[TransferEvent]:  # noqa: D401
        if token in self.failing_tokens:
            raise ConnectionError(f"event filter for {token} failed")
        return [
            {"from": t.sender, "to": t.recipient, "value": t.amount}
            for block, t in self._log
            if t.token == token and block >= from_block
        ]

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> int:
        """Apply a plain token transfer in its own block; returns that block number."""
        self._mine([TransferRecord(token, sender, recipient, amount)])
        return self._block

    def balance_of(self, token: str, account: str) -> int:
        return self._balances[(token, account)]

    def _mine(self, transfers: list[TransferRecord]) -> None:
        # all-or-nothing: validate every debit before touching balances
        pending: dict[tuple[str, str], int] = defaultdict(int)
        for t in transfers:
            pending[(t.token, t.sender)] -= t.amount
            pending[(t.token, t.recipient)] += t.amount
        for key, delta in pending.items():
            if self._balances[key] + delta < 0:
                raise ValueError(f"Insufficient balance: token={key[0]} account={key[1]}")
        self._block += 1
        for key, delta in pending.items():
            self._balances[key] += delta
        self._log.extend((self._block, t) for t in transfers)


class InMemoryTokenRegistry(TokenRegistry):  # type: ignore[misc]
    def __init__(self, addresses: dict[str, str] | None = None) -> None:
        self._by_symbol: dict[str, str] = dict(addresses or {})

    async def address_of(self, symbol: str) -> str:  # noqa: D401
        try:
            return self._by_symbol[symbol]
        except KeyError:
            raise ScenarioError(f"Unknown token symbol: {symbol}") from None

    def register(self, symbol: str, address: str) -> None:
        self._by_symbol[symbol] = address

    def addresses(self) -> list[str]:
        return list(self._by_symbol.values())
