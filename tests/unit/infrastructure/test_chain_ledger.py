from __future__ import annotations

import pytest
from web3 import Web3

from ringcheck.application.ports import LedgerBackend, TokenRegistry
from ringcheck.domain.errors import ScenarioError
from ringcheck.infrastructure.chain.ledger import TOKEN_ABI, Web3Ledger, Web3TokenRegistry, connect

EXCHANGE = "0x" + "11" * 20
REGISTRY = "0x" + "22" * 20
TOKEN = "0x" + "33" * 20
ZERO = "0x" + "00" * 20


class _Call:
    def __init__(self, value: str) -> None:
        self._value = value

    async def call(self) -> str:
        return self._value


class _RegistryFunctions:
    def __init__(self, table: dict[str, str]) -> None:
        self.table = table
        self.calls: list[str] = []

    def getAddressBySymbol(self, symbol: str) -> _Call:  # noqa: N802
        self.calls.append(symbol)
        return _Call(self.table.get(symbol, ZERO))


class _RegistryContract:
    def __init__(self, table: dict[str, str]) -> None:
        self.functions = _RegistryFunctions(table)


def test_adapters_build_contracts_without_network():
    w3 = connect("http://127.0.0.1:1")
    ledger = Web3Ledger(w3, EXCHANGE)
    assert isinstance(ledger, LedgerBackend)
    token = ledger._token(TOKEN)
    assert token is ledger._token(TOKEN)
    assert token.address == w3.to_checksum_address(TOKEN)
    assert {e["name"] for e in TOKEN_ABI} == {"Transfer", "addBalance"}
    assert isinstance(Web3TokenRegistry(w3, REGISTRY), TokenRegistry)


@pytest.mark.asyncio
async def test_registry_lookup_is_cached_and_rejects_unknown_symbols():
    registry = Web3TokenRegistry(connect("http://127.0.0.1:1"), REGISTRY)
    fake = _RegistryContract({"WETH": TOKEN})
    registry._registry = fake

    assert await registry.address_of("WETH") == TOKEN
    assert await registry.address_of("WETH") == TOKEN
    assert fake.functions.calls == ["WETH"]
    with pytest.raises(ScenarioError, match="XYZ"):
        await registry.address_of("XYZ")


def test_connect_defaults_to_configured_rpc_url(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RPC_URL", "http://node.internal:8545")
    assert connect().provider.endpoint_uri == "http://node.internal:8545"
    assert connect("http://other:8545").provider.endpoint_uri == "http://other:8545"


TX_HASH = b"\xab" * 32
OWNER = "0x" + "44" * 20
FUNDER = "0x" + "55" * 20


class _Transaction:
    def __init__(self, sent: list, name: str, args: tuple) -> None:
        self._sent = sent
        self._name = name
        self._args = args

    async def transact(self, params: dict) -> bytes:
        self._sent.append((self._name, self._args, params))
        return TX_HASH


class _Functions:
    def __init__(self, sent: list) -> None:
        self._sent = sent

    def submitRings(self, payload: bytes) -> _Transaction:  # noqa: N802
        return _Transaction(self._sent, "submitRings", (payload,))

    def addBalance(self, to: str, value: int) -> _Transaction:  # noqa: N802
        return _Transaction(self._sent, "addBalance", (to, value))


class _TransferEvent:
    def __init__(self, logs: list) -> None:
        self.logs = logs
        self.queries: list[dict] = []

    async def get_logs(self, **kwargs) -> list:
        self.queries.append(kwargs)
        return self.logs


class _Events:
    def __init__(self, logs: list) -> None:
        self.Transfer = _TransferEvent(logs)


class _Contract:
    def __init__(self, sent: list, logs: list | None = None) -> None:
        self.functions = _Functions(sent)
        self.events = _Events(logs or [])


class _Eth:
    def __init__(self, status: int = 1, block: int = 42) -> None:
        self.status = status
        self.block = block

    @property
    async def block_number(self) -> int:
        return self.block

    async def wait_for_transaction_receipt(self, tx_hash: bytes) -> dict:
        return {"status": self.status, "blockNumber": self.block, "gasUsed": 21_000, "transactionHash": tx_hash}


class _W3:
    to_hex = staticmethod(Web3.to_hex)

    def __init__(self, eth: _Eth) -> None:
        self.eth = eth


def _ledger(*, status: int = 1, logs: list | None = None, funder: str | None = None):
    sent: list = []
    ledger = Web3Ledger(connect("http://127.0.0.1:1"), EXCHANGE, funder=funder)
    ledger.w3 = _W3(_Eth(status=status))
    ledger._exchange = _Contract(sent)
    token = _Contract(sent, logs)
    ledger._tokens[TOKEN] = token
    return ledger, sent, token


@pytest.mark.asyncio
async def test_submit_returns_block_and_prefixed_hash():
    ledger, sent, _ = _ledger()
    receipt = await ledger.submit(b"\x01\x02", OWNER)
    assert receipt.block_number == 42
    assert receipt.transaction_hash == "0x" + "ab" * 32
    assert sent == [("submitRings", (b"\x01\x02",), {"from": OWNER})]
    assert await ledger.block_number() == 42


@pytest.mark.asyncio
async def test_reverted_transaction_raises():
    ledger, _, _ = _ledger(status=0)
    with pytest.raises(RuntimeError, match="submitRings reverted in block 42"):
        await ledger.submit(b"\x01", OWNER)
    with pytest.raises(RuntimeError, match="addBalance reverted"):
        await ledger.credit(OWNER, TOKEN, 5)


@pytest.mark.asyncio
async def test_credit_is_sent_by_funder_or_account():
    ledger, sent, _ = _ledger()
    await ledger.credit(OWNER, TOKEN, 7)
    funded, funded_sent, _ = _ledger(funder=FUNDER)
    await funded.credit(OWNER, TOKEN, 9)
    assert sent == [("addBalance", (OWNER, 7), {"from": OWNER})]
    assert funded_sent == [("addBalance", (OWNER, 9), {"from": FUNDER})]


@pytest.mark.asyncio
async def test_transfer_logs_are_flattened_from_checkpoint():
    logs = [
        {"args": {"from": OWNER, "to": FUNDER, "value": 5}, "blockNumber": 8, "logIndex": 0},
        {"args": {"from": FUNDER, "to": OWNER, "value": 10**30}, "blockNumber": 9, "logIndex": 1},
    ]
    ledger, _, token = _ledger(logs=logs)
    events = await ledger.query_transfer_events(TOKEN, 7)
    assert events == [
        {"from": OWNER, "to": FUNDER, "value": 5},
        {"from": FUNDER, "to": OWNER, "value": 10**30},
    ]
    assert token.events.Transfer.queries == [{"from_block": 7, "to_block": "latest"}]
