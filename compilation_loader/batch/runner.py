"""Batch execution: extract every entry, load once, convert every entry.

WHY: The three stages of a pass only make sense together. Running them
in one place enforces the ordering guarantee (ids match entries by
position) and the all-or-nothing rule (a failed load leaves every entry
of the batch without its new db key).

HOW: run_batch calls extract per entry, awaits process once with all
records, checks the id count, then calls convert per (entry, id) pair.
An optional on_status callback is told which stage is starting.

RULES:
- Exactly one await per batch, inside process
- Any exception from extract or process propagates unchanged
- A result count that differs from the record count raises
  BatchResultMismatchError before any convert runs
- An empty batch returns [] without calling the loader
- on_status receives "extracting", "loading", then "converting"
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import List, Optional, Sequence

from compilation_loader.batch.base import BaseBatch
from compilation_loader.core.ir import CompilationEntry
from compilation_loader.loader.base import BatchResultMismatchError, ResourceLoader

logger = logging.getLogger(__name__)

STAGE_EXTRACTING = "extracting"
STAGE_LOADING = "loading"
STAGE_CONVERTING = "converting"


async def run_batch(
    batch: BaseBatch,
    entries: Sequence[CompilationEntry],
    loader: ResourceLoader,
    on_status: Optional[Callable[[str], None]] = None,
) -> List[CompilationEntry]:
    """Run one pass over a batch of entries.

    Args:
        batch: The pass to run, e.g. CompilationsBatch().
        entries: Entries sharing this pass's configuration.
        loader: Where records get persisted.
        on_status: Optional callback for stage changes.

    Returns:
        New entries, in input order, each carrying its assigned id.

    Raises:
        BatchResultMismatchError: The loader broke the one-id-per-record contract.
    """
    if not entries:
        return []

    if on_status:
        on_status(STAGE_EXTRACTING)
    records = [batch.extract(entry) for entry in entries]

    if on_status:
        on_status(STAGE_LOADING)
    results = await batch.process(records, loader)

    if len(results) != len(records):
        raise BatchResultMismatchError(expected=len(records), actual=len(results))

    if on_status:
        on_status(STAGE_CONVERTING)
    logger.info("Loaded %d %s", len(results), batch.resource)
    return [batch.convert(entry, result) for entry, result in zip(entries, results)]
