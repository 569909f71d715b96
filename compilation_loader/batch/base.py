"""Abstract batch stage set and the db namespace merge.

WHY: Every loading pass (sources, bytecodes, compilations, contracts)
follows the same three-step shape: turn each entry into a record, load
all records at once, fold each assigned id back into its entry. This
base class pins that shape so run_batch can drive any pass generically.

HOW: BaseBatch is an ABC with a ``resource`` property and three stages:
  extract  — pure, entry → record
  process  — coroutine, records → ids (the only await in a batch)
  convert  — pure, (entry, id) → new entry
merge_db builds the new entry for convert without touching the old one.

RULES:
- extract and convert never await and never mutate their arguments
- process awaits the loader exactly once per batch
- convert returns a new entry whose db is a new mapping
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from typing import Any, List, Sequence

from compilation_loader.core.ir import CompilationEntry, IdObject
from compilation_loader.loader.base import ResourceLoader


def merge_db(entry: CompilationEntry, key: str, value: IdObject) -> CompilationEntry:
    """Return a shallow copy of entry with db extended by {key: value}.

    RULES:
    - Existing db keys from earlier passes are kept as-is
    - An existing value under key is replaced in the copy only
    - The input entry and its db mapping are left untouched
    """
    return dataclasses.replace(entry, db={**entry.db, key: value})


class BaseBatch(ABC):
    """Abstract base for one loading pass.

    To add a new pass:
    1. Create a new module in batch/
    2. Subclass BaseBatch
    3. Implement resource, extract(), process() and convert()
    4. Register it in BATCHES in batch/__init__.py
    """

    @property
    @abstractmethod
    def resource(self) -> str:
        """Resource kind this pass loads, e.g. 'compilations'."""

    @abstractmethod
    def extract(self, entry: CompilationEntry) -> Any:
        """Build the normalized record for one entry."""

    @abstractmethod
    async def process(self, records: Sequence[Any], loader: ResourceLoader) -> List[IdObject]:
        """Load every record of the batch and return their ids in order."""

    @abstractmethod
    def convert(self, entry: CompilationEntry, result: IdObject) -> CompilationEntry:
        """Fold one assigned id back into its entry."""
