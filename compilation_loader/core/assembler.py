"""Source index resolution, per-contract flattening, and CompilationInput
construction.

WHY: A compilation arrives as three independently ordered collections:
the canonical source index list, an unordered bag of sources, and an
unordered bag of contracts. The persistence layer needs one record
whose arrays are either aligned to the source index list or flattened
across all contracts. This module is the bridge.

HOW: Sources are resolved positionally against source_indexes (first
match by exact path wins, a miss leaves a None slot). Contracts are
fanned out into source map and immutable reference records, then
flattened in contract order. build_compilation_input composes the four
resulting sequences with the compiler descriptor.

RULES:
- Every function here is pure; inputs are never mutated
- Positional alignment beats density: unmatched paths are None slots
- Source maps: create (sourceMap) before deployed (deployedSourceMap)
- Empty or missing source maps produce no record
- An AST of null, false, 0 or "" is stored as absent; {} and [] are kept
- Immutable references: length comes from the first offset of each key
- A key with an empty offset list is invalid input and raises IndexError
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

from compilation_loader.core.ir import (
    AstPayload,
    CompilationInput,
    Compiler,
    Contract,
    IdObject,
    ImmutableReferenceInput,
    ProcessedSourceInput,
    Source,
    SourceMapInput,
)

T = TypeVar("T")


def resolve_source_indexes(
    source_indexes: Sequence[str],
    sources: Iterable[Source],
) -> List[Optional[Source]]:
    """Align sources to the canonical source index order.

    WHY: Source maps refer to files by their position in the compiler's
    source list, so the stored arrays must keep that position even when
    a file is missing from the bag of sources.

    HOW: Index the sources by path, keeping the first record seen for a
    path, then look up every entry of source_indexes.

    RULES:
    - Output length always equals len(source_indexes)
    - Lookup is exact string equality on source_path
    - Duplicate paths: the first source in collection order wins
    - No match → None at that position, not an error

    Args:
        source_indexes: Ordered source paths for this compilation.
        sources: Unordered source records.

    Returns:
        One Source or None per entry of source_indexes.
    """
    by_path: Dict[str, Source] = {}
    for source in sources:
        by_path.setdefault(source.source_path, source)

    return [by_path.get(source_path) for source_path in source_indexes]


def _project_sources(
    source_indexes: Sequence[str],
    sources: Iterable[Source],
    project: Callable[[Source], T],
) -> List[Optional[T]]:
    return [
        project(source) if source is not None else None
        for source in resolve_source_indexes(source_indexes, sources)
    ]


def _has_ast(ast: Any) -> bool:
    # Objects and arrays count even when empty; null, false, 0 and "" do not.
    if isinstance(ast, (dict, list)):
        return True
    return bool(ast)


def _to_processed_source(source: Source) -> ProcessedSourceInput:
    ast = AstPayload.from_value(source.ast) if _has_ast(source.ast) else None
    return ProcessedSourceInput(
        source=source.db_source,
        ast=ast,
        language=source.language,
    )


def to_processed_source_inputs(
    source_indexes: Sequence[str],
    sources: Iterable[Source],
) -> List[Optional[ProcessedSourceInput]]:
    """Project each aligned source to {source, ast, language}."""
    return _project_sources(source_indexes, sources, _to_processed_source)


def to_source_inputs(
    source_indexes: Sequence[str],
    sources: Iterable[Source],
) -> List[Optional[IdObject]]:
    """Project each aligned source to its bare db.source reference."""
    return _project_sources(source_indexes, sources, lambda source: source.db_source)


def collect_source_maps(contracts: Iterable[Contract]) -> List[SourceMapInput]:
    """Flatten the source maps of all contracts into one list.

    WHY: Source maps belong to bytecodes, but the persistence layer
    stores them on the compilation. Each map is tagged with the bytecode
    it describes.

    RULES:
    - sourceMap → createBytecode, deployedSourceMap → callBytecode
    - Within a contract the create map comes first
    - Empty maps are skipped; a contract with neither contributes nothing
    """
    source_maps: List[SourceMapInput] = []

    for contract in contracts:
        if contract.source_map:
            source_maps.append(SourceMapInput(
                bytecode=contract.db_create_bytecode,
                data=contract.source_map,
            ))

        if contract.deployed_source_map:
            source_maps.append(SourceMapInput(
                bytecode=contract.db_call_bytecode,
                data=contract.deployed_source_map,
            ))

    return source_maps


def collect_immutable_references(
    contracts: Iterable[Contract],
) -> List[ImmutableReferenceInput]:
    """Flatten immutable reference tables into one record per AST node.

    WHY: The compiler reports, for each immutable variable (keyed by its
    AST node id), every place its value is spliced into the bytecode.
    The persistence layer wants one row per variable with all offsets.

    HOW: Skip contracts with an empty table. For each remaining
    (ast_node, offsets) pair emit the create bytecode ref, the length of
    the first offset record, and the start of every offset record.

    RULES:
    - Contract order, then table order, is preserved
    - length is read from offsets[0]; the other lengths are not checked
    - An empty offsets list raises IndexError (upstream never emits one)
    """
    references: List[ImmutableReferenceInput] = []

    for contract in contracts:
        if not contract.immutable_references:
            continue

        for ast_node, offsets in contract.immutable_references.items():
            references.append(ImmutableReferenceInput(
                ast_node=ast_node,
                bytecode=contract.db_create_bytecode,
                length=offsets[0].length,
                offsets=[offset.start for offset in offsets],
            ))

    return references


def build_compilation_input(
    compiler: Compiler,
    source_indexes: Sequence[str],
    sources: Sequence[Source],
    contracts: Sequence[Contract],
) -> CompilationInput:
    """Build the normalized CompilationInput for one compilation.

    Args:
        compiler: Compiler descriptor (name, version).
        source_indexes: Canonical ordered source paths.
        sources: Source records, any order.
        contracts: Contract records, any order.

    Returns:
        A fresh CompilationInput ready for the loader.
    """
    return CompilationInput(
        compiler=compiler,
        processed_sources=to_processed_source_inputs(source_indexes, sources),
        sources=to_source_inputs(source_indexes, sources),
        source_maps=collect_source_maps(contracts),
        immutable_references=collect_immutable_references(contracts),
    )
