from __future__ import annotations

from collections.abc import Iterator
from contextlib import suppress

import pytest

from ringcheck.domain.models import OrderDescriptor, SettlementBatch, SignAlgorithm, TransferRecord
from ringcheck.infrastructure.config.settings import get_settings

import fakes

_ENV_KEYS = (
    "ENV",
    "LOG_LEVEL",
    "JSON_LOGS",
    "LOGGING_ENABLED",
    "LOG_FILE",
    "AMOUNT_PRECISION",
    "TOKEN_DECIMALS",
    "ROUNDING",
    "DEFAULT_LRC_FEE",
    "RPC_URL",
    "SCENARIOS_FILE",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Every test starts from default settings, unaffected by the caller's environment."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv(f"RINGCHECK__{key}", raising=False)
    with suppress(AttributeError):
        get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    with suppress(AttributeError):
        get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture
def two_order_batch() -> SettlementBatch:
    """Direct WETH <-> GTO ring of two 100-token orders, as produced by describe()."""
    weth, gto = fakes.TOKENS["WETH"], fakes.TOKENS["GTO"]
    orders = (
        OrderDescriptor(
            token_s=weth,
            token_b=gto,
            amount_s=100 * fakes.E18,
            amount_b=100 * fakes.E18,
            owner=fakes.OWNERS[0],
            lrc_fee=fakes.E18,
            all_or_none=False,
            dual_auth_addr=fakes.DUAL_AUTH[0],
            dual_auth_sign_algorithm=SignAlgorithm.ETHEREUM,
        ),
        OrderDescriptor(
            token_s=gto,
            token_b=weth,
            amount_s=100 * fakes.E18,
            amount_b=100 * fakes.E18,
            owner=fakes.OWNERS[1],
            lrc_fee=fakes.E18,
            all_or_none=False,
            dual_auth_addr=fakes.DUAL_AUTH[1],
            dual_auth_sign_algorithm=SignAlgorithm.ETHEREUM,
        ),
    )
    return SettlementBatch(
        rings=((0, 1),),
        orders=orders,
        fee_recipient=fakes.MINER,
        transaction_origin=fakes.ORIGIN,
        miner=fakes.MINER,
        description="simple ring with 2 orders",
        sign_algorithm=SignAlgorithm.ETHEREUM,
    )


@pytest.fixture
def sample_transfers() -> list[TransferRecord]:
    weth, gto, lrc = fakes.TOKENS["WETH"], fakes.TOKENS["GTO"], fakes.TOKENS["LRC"]
    return [
        TransferRecord(weth, "0xB", "0xA", 5 * fakes.E18),
        TransferRecord(gto, "0xA", "0xB", 7 * fakes.E18),
        TransferRecord(lrc, "0xA", "0xMiner", fakes.E18),
        TransferRecord(lrc, "0xB", "0xMiner", fakes.E18),
        TransferRecord(weth, "0xB", "0xA", 2 * fakes.E18),
        TransferRecord(lrc, "0xA", "0xMiner", fakes.E18),
    ]
