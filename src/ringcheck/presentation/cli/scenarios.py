"""Scenario inspection commands: list, show.

Human output by default; --json for scripting. ScenarioError (bad file,
unknown index) is handled by the top-level cli() in main.py (exit code 2).
"""
from __future__ import annotations

import json

from typer import Argument, Option, Typer

from ringcheck.domain.errors import ScenarioError
from ringcheck.infrastructure.config.settings import get_settings
from ringcheck.infrastructure.scenarios import load_scenarios

from .formatters import dataclass_to_dict, scenario_to_dict

scenarios = Typer(help="Inspect the configured scenario set.")


def _load(file: str | None):
    return load_scenarios(file or get_settings().scenarios_file)


@scenarios.command("list")
def scenarios_list(
    file: str | None = Option(None, "--file", "-f", help="Scenario JSON file (defaults to the built-in set)."),
    json_output: bool = Option(False, "--json", help="Output a JSON array instead of text lines."),
) -> None:
    """List scenarios with their ring topology."""
    items = [scenario_to_dict(i, s) for i, s in enumerate(_load(file))]
    if json_output:
        print(json.dumps(items))
        return
    for item in items:
        print(f"{item['index']:>3}  {item['description']}  orders={item['orders']} rings={item['rings']}")


@scenarios.command("show")
def scenarios_show(
    index: int = Argument(..., help="Scenario index as printed by 'scenarios list'."),
    file: str | None = Option(None, "--file", "-f", help="Scenario JSON file (defaults to the built-in set)."),
) -> None:
    """Print one scenario as JSON."""
    loaded = _load(file)
    if not 0 <= index < len(loaded):
        raise ScenarioError(f"No scenario with index {index} (have {len(loaded)})")
    print(json.dumps(dataclass_to_dict(loaded[index]), indent=2))
