"""Compilations loading pass.

WHY: After sources and bytecodes are persisted, each compilation can be
stored as one normalized record that points at them. The id assigned to
that record is what contracts later reference.

HOW: extract builds the CompilationInput, process hands the whole batch
to the loader under the "compilations" kind, convert stores the id under
db.compilation.

RULES:
- One loader call per batch
- db.compilation is added; every other db key is preserved
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from compilation_loader.batch.base import BaseBatch, merge_db
from compilation_loader.config import COMPILATIONS_RESOURCE
from compilation_loader.core.assembler import build_compilation_input
from compilation_loader.core.ir import CompilationEntry, CompilationInput, IdObject
from compilation_loader.loader.base import ResourceLoader

logger = logging.getLogger(__name__)


class CompilationsBatch(BaseBatch):
    @property
    def resource(self) -> str:
        return COMPILATIONS_RESOURCE

    def extract(self, entry: CompilationEntry) -> CompilationInput:
        return build_compilation_input(
            compiler=entry.compiler,
            source_indexes=entry.source_indexes,
            sources=entry.sources,
            contracts=entry.contracts,
        )

    async def process(
        self,
        records: Sequence[CompilationInput],
        loader: ResourceLoader,
    ) -> List[IdObject]:
        logger.debug("entries %s", records)
        return await loader.load(self.resource, records)

    def convert(self, entry: CompilationEntry, result: IdObject) -> CompilationEntry:
        return merge_db(entry, "compilation", result)
