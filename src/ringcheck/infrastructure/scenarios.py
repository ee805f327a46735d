"""Scenario files: JSON documents validated with pydantic.

A file holds either a list of scenarios or ``{"scenarios": [...]}``. Keys use
the camelCase spelling of the exchange tooling (``tokenS``, ``amountS``,
``allOrNone``); snake_case is accepted too. Amounts may be written as integers
or as decimal strings with an exponent (``"100e18"``).
"""
from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from importlib import resources
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from ringcheck.domain.errors import ScenarioError
from ringcheck.domain.models import SignAlgorithm
from ringcheck.domain.scenarios import OrderSpec, Scenario

__all__ = ["OrderModel", "ScenarioModel", "parse_scenarios", "load_scenarios", "builtin_scenarios"]


def _parse_amount(value: Any) -> Any:
    if isinstance(value, bool) or value is None or isinstance(value, int):
        return value
    try:
        d = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc
    if d != d.to_integral_value():
        raise ValueError(f"Amount must be a whole number of base units: {value!r}")
    return int(d)


def _parse_sign_algorithm(value: Any) -> Any:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, str):
        try:
            return SignAlgorithm[value.upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown sign algorithm: {value!r}") from exc
    return value


Amount = Annotated[int, BeforeValidator(_parse_amount)]
Algorithm = Annotated[SignAlgorithm, BeforeValidator(_parse_sign_algorithm)]


class OrderModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    token_s: str
    token_b: str
    amount_s: Amount = Field(ge=0)
    amount_b: Amount = Field(ge=0)
    lrc_fee: Amount | None = Field(default=None, ge=0)
    all_or_none: bool | None = None
    dual_auth_sign_algorithm: Algorithm | None = None
    dual_auth_addr: str | None = None
    owner_index: int | None = Field(default=None, ge=0)
    valid_since: int | None = None
    valid_until: int | None = None
    wallet_addr: str | None = None
    wallet_split_percentage: int | None = Field(default=None, ge=0, le=100)
    token_recipient: str | None = None
    broker: str | None = None
    order_interceptor: str | None = None

    def to_domain(self) -> OrderSpec:
        return OrderSpec(**self.model_dump())


class ScenarioModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    description: str
    orders: list[OrderModel]
    rings: list[list[int]]
    sign_algorithm: Algorithm = SignAlgorithm.ETHEREUM

    def to_domain(self) -> Scenario:
        return Scenario(
            description=self.description,
            orders=tuple(o.to_domain() for o in self.orders),
            rings=tuple(tuple(r) for r in self.rings),
            sign_algorithm=self.sign_algorithm,
        )


_SCENARIO_LIST = TypeAdapter(list[ScenarioModel])


def parse_scenarios(doc: Any) -> list[Scenario]:
    """Validate a decoded JSON document and return domain scenarios."""
    if isinstance(doc, dict) and "scenarios" in doc:
        doc = doc["scenarios"]
    try:
        models = _SCENARIO_LIST.validate_python(doc)
    except ValidationError as exc:
        raise ScenarioError(f"Invalid scenario document: {exc}") from exc
    return [m.to_domain() for m in models]


def load_scenarios(path: str | Path | None = None) -> list[Scenario]:
    """Load scenarios from ``path``, or the built-in set when ``path`` is None."""
    if path is None:
        return builtin_scenarios()
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ScenarioError(f"Scenario file not found: {p}") from exc
    except json.JSONDecodeError as exc:
        raise ScenarioError(f"Scenario file is not valid JSON: {p}: {exc}") from exc
    return parse_scenarios(doc)


def builtin_scenarios() -> list[Scenario]:
    text = resources.files("ringcheck.scenarios").joinpath("default.json").read_text(encoding="utf-8")
    return parse_scenarios(json.loads(text))
