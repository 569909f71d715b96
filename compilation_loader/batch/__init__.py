"""Loading pass registry.

WHY: The CLI and HTTP service look passes up by resource name. A
central dict keeps that lookup in one place.

HOW: BATCHES maps resource kind to the pass *class*. Callers
instantiate as needed: ``batch = BATCHES["compilations"]()``.

RULES:
- Keys are loader resource kinds
- Values are BaseBatch subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from compilation_loader.batch.compilations import CompilationsBatch
from compilation_loader.batch.runner import run_batch
from compilation_loader.config import COMPILATIONS_RESOURCE

if TYPE_CHECKING:
    from compilation_loader.batch.base import BaseBatch

BATCHES: dict[str, type[BaseBatch]] = {
    COMPILATIONS_RESOURCE: CompilationsBatch,
}

__all__ = ["BATCHES", "CompilationsBatch", "run_batch"]
