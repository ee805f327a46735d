"""Shared CLI helpers: event-loop bridge and harness factory loading.

A harness factory is any callable reachable as ``package.module:attribute``
that accepts the run settings and returns a ready ``SettlementVerifier`` (or
an awaitable resolving to one). The factory owns deployment, account
provisioning and simulator construction, none of which the CLI knows about.
"""
from __future__ import annotations

import asyncio as _asyncio
import importlib
import inspect
from collections.abc import Coroutine
from contextlib import suppress
from typing import Any

from ringcheck.application.verifier import SettlementVerifier
from ringcheck.domain.errors import ScenarioError
from ringcheck.infrastructure.config.settings import BaseAppSettings


def run_sync[T](coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion from synchronous CLI code.

    Raises RuntimeError when an event loop is already running in this thread;
    the coroutine is closed first so no "never awaited" warning is emitted.
    """
    try:
        _asyncio.get_running_loop()
    except RuntimeError:
        return _asyncio.run(coro)
    with suppress(Exception):
        coro.close()
    raise RuntimeError(
        "run_sync() cannot be used inside an active event loop. "
        "Await the verifier directly from async code."
    )


def resolve_factory(spec: str) -> Any:
    """Import ``module:attribute`` and return the attribute."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ScenarioError(f"Harness must be given as 'module:factory', got {spec!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ScenarioError(f"Cannot import harness module {module_name!r}: {exc}") from exc
    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise ScenarioError(f"Harness {spec!r} has no attribute {part!r}") from exc
    if not callable(target):
        raise ScenarioError(f"Harness {spec!r} is not callable")
    return target


async def build_verifier(spec: str, settings: BaseAppSettings) -> SettlementVerifier:
    """Call the harness factory and check that it produced a verifier."""
    result = resolve_factory(spec)(settings)
    if inspect.isawaitable(result):
        result = await result
    if not isinstance(result, SettlementVerifier):
        raise ScenarioError(f"Harness {spec!r} returned {type(result).__name__}, expected SettlementVerifier")
    return result
