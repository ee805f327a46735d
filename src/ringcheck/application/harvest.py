from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from ringcheck.application.ports import LedgerBackend, TransferEvent
from ringcheck.domain.errors import EventRetrievalFailure
from ringcheck.domain.models import TransferRecord

__all__ = ["to_transfer_record", "harvest_token", "harvest_transfers"]

log = structlog.stdlib.get_logger(__name__)


def to_transfer_record(token: str, event: TransferEvent) -> TransferRecord:
    """Flatten a raw Transfer event of ``token`` into a TransferRecord.

    Raises:
        EventRetrievalFailure: missing from/to/value or a value that is not a
            non-negative integer.
    """
    try:
        sender, recipient, value = event["from"], event["to"], event["value"]
    except (KeyError, TypeError) as exc:
        raise EventRetrievalFailure(f"Malformed Transfer event for token {token}: {event!r}", token=token) from exc
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise EventRetrievalFailure(f"Malformed Transfer value for token {token}: {value!r}", token=token)
    return TransferRecord(token=token, sender=str(sender), recipient=str(recipient), amount=value)


async def harvest_token(ledger: LedgerBackend, token: str, from_block: int) -> list[TransferRecord]:
    """All Transfer records of ``token`` from ``from_block`` through the latest block."""
    try:
        events = await ledger.query_transfer_events(token, from_block)
    except EventRetrievalFailure:
        raise
    except Exception as exc:
        raise EventRetrievalFailure(f"Failed to query Transfer events for token {token}: {exc}", token=token) from exc
    if events is None:
        raise EventRetrievalFailure(f"No event list returned for token {token}", token=token)
    return [to_transfer_record(token, e) for e in events]


async def harvest_transfers(ledger: LedgerBackend, tokens: Sequence[str], from_block: int) -> list[TransferRecord]:
    """Harvest every token concurrently and merge the results.

    A failure for any token fails the whole harvest; a partial transfer set is
    never returned. A token listed twice is queried once. The merged list
    carries no ordering guarantee.
    """
    tokens = list(dict.fromkeys(tokens))
    results = await asyncio.gather(
        *(harvest_token(ledger, token, from_block) for token in tokens),
        return_exceptions=True,
    )
    transfers: list[TransferRecord] = []
    for token, result in zip(tokens, results, strict=True):
        if isinstance(result, BaseException):
            log.error("harvest_failed", token=token, from_block=from_block, error=str(result))
            raise result
        transfers.extend(result)
    log.debug("harvested", tokens=len(tokens), from_block=from_block, transfers=len(transfers))
    return transfers
