"""web3.py backend for a node running the exchange and dummy token contracts.

Only the contract functions the oracle needs are declared in the ABIs below:
``submitRings(bytes)`` on the exchange, ``addBalance(address,uint256)`` and
the ERC-20 ``Transfer`` event on tokens, ``getAddressBySymbol(string)`` on the
token registry.
"""
from __future__ import annotations

from typing import Any

import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3

from ringcheck.application.ports import LedgerBackend, Receipt, TokenRegistry, TransferEvent
from ringcheck.domain.errors import ScenarioError
from ringcheck.infrastructure.config.settings import get_settings

__all__ = ["Web3Ledger", "Web3TokenRegistry", "connect"]

log = structlog.stdlib.get_logger(__name__)

EXCHANGE_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "submitRings",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "data", "type": "bytes"}],
        "outputs": [],
    },
]

TOKEN_ABI: list[dict[str, Any]] = [
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "function",
        "name": "addBalance",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_to", "type": "address"}, {"name": "_value", "type": "uint256"}],
        "outputs": [],
    },
]

TOKEN_REGISTRY_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getAddressBySymbol",
        "stateMutability": "view",
        "inputs": [{"name": "symbol", "type": "string"}],
        "outputs": [{"name": "", "type": "address"}],
    },
]


def connect(rpc_url: str | None = None) -> AsyncWeb3:
    """AsyncWeb3 over HTTP; ``RPC_URL`` from settings when no url is given."""
    return AsyncWeb3(AsyncHTTPProvider(rpc_url or get_settings().rpc_url))


class Web3Ledger(LedgerBackend):  # type: ignore[misc]
    """Ledger backed by a JSON-RPC node.

    ``funder`` signs the ``addBalance`` top-ups; it defaults to the credited
    account itself.
    """

    def __init__(self, w3: AsyncWeb3, exchange_address: str, funder: str | None = None) -> None:
        self.w3 = w3
        self._exchange = w3.eth.contract(address=w3.to_checksum_address(exchange_address), abi=EXCHANGE_ABI)
        self._funder = funder
        self._tokens: dict[str, Any] = {}

    def _token(self, address: str) -> Any:
        contract = self._tokens.get(address)
        if contract is None:
            contract = self.w3.eth.contract(address=self.w3.to_checksum_address(address), abi=TOKEN_ABI)
            self._tokens[address] = contract
        return contract

    async def _wait(self, tx_hash: Any, what: str) -> Any:
        receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] != 1:
            raise RuntimeError(f"{what} reverted in block {receipt['blockNumber']}")
        return receipt

    async def block_number(self) -> int:  # noqa: D401
        return int(await self.w3.eth.block_number)

    async def submit(self, payload: bytes, sender: str) -> Receipt:
        tx_hash = await self._exchange.functions.submitRings(payload).transact({"from": sender})
        receipt = await self._wait(tx_hash, "submitRings")
        log.debug("submitted", block=receipt["blockNumber"], gas_used=receipt["gasUsed"])
        return Receipt(block_number=int(receipt["blockNumber"]), transaction_hash=self.w3.to_hex(tx_hash))

    async def query_transfer_events(self, token: str, from_block: int) -> list[TransferEvent]:
        logs = await self._token(token).events.Transfer.get_logs(from_block=from_block, to_block="latest")
        return [{"from": e["args"]["from"], "to": e["args"]["to"], "value": int(e["args"]["value"])} for e in logs]

    async def credit(self, account: str, token: str, amount: int) -> None:
        tx_hash = await self._token(token).functions.addBalance(account, amount).transact(
            {"from": self._funder or account}
        )
        await self._wait(tx_hash, "addBalance")


class Web3TokenRegistry(TokenRegistry):  # type: ignore[misc]
    """Symbol lookups against the on-chain token registry, cached per run."""

    def __init__(self, w3: AsyncWeb3, registry_address: str) -> None:
        self._registry = w3.eth.contract(address=w3.to_checksum_address(registry_address), abi=TOKEN_REGISTRY_ABI)
        self._cache: dict[str, str] = {}

    async def address_of(self, symbol: str) -> str:
        if symbol not in self._cache:
            address = await self._registry.functions.getAddressBySymbol(symbol).call()
            if int(address, 16) == 0:
                raise ScenarioError(f"Token symbol not registered: {symbol}")
            self._cache[symbol] = address
        return self._cache[symbol]
