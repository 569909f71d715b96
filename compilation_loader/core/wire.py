"""JSON wire form for normalized records and enriched entries.

WHY: The persistence service speaks camelCase JSON with references as
{"id": ...} objects and ASTs as {"json": "..."} payloads. The IR uses
snake_case dataclasses. This module is the one place that translates
between them, and it checks outgoing records against the bundled
schema so a malformed record fails here rather than in the service.

HOW: Plain functions walk the dataclasses and build dicts. The schema
lives next to this module in compilation_input_schema.json and is
loaded once on first use.

RULES:
- None slots stay None (JSON null); positions are never dropped
- IdObject.resource is not serialized
- entry_to_dict re-emits every extra and db_extra key untouched
- validate_compilation_input raises jsonschema.ValidationError on failure
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from compilation_loader.core.ir import (
    CompilationEntry,
    CompilationInput,
    Contract,
    IdObject,
    ImmutableReferenceInput,
    ProcessedSourceInput,
    Source,
    SourceMapInput,
)

_SCHEMA_PATH = Path(__file__).resolve().parent / "compilation_input_schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


def _ref(value: Optional[IdObject]) -> Optional[Dict[str, Any]]:
    return value.to_dict() if value is not None else None


def _processed_source_to_dict(value: Optional[ProcessedSourceInput]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    return {
        "source": value.source.to_dict(),
        "ast": {"json": value.ast.json} if value.ast is not None else None,
        "language": value.language,
    }


def _source_map_to_dict(value: SourceMapInput) -> Dict[str, Any]:
    return {"bytecode": _ref(value.bytecode), "data": value.data}


def _immutable_reference_to_dict(value: ImmutableReferenceInput) -> Dict[str, Any]:
    return {
        "astNode": value.ast_node,
        "bytecode": _ref(value.bytecode),
        "length": value.length,
        "offsets": list(value.offsets),
    }


def compilation_input_to_dict(record: CompilationInput) -> Dict[str, Any]:
    """Serialize a CompilationInput to the persistence layer's JSON shape."""
    return {
        "compiler": record.compiler.to_dict(),
        "processedSources": [_processed_source_to_dict(p) for p in record.processed_sources],
        "sources": [_ref(s) for s in record.sources],
        "sourceMaps": [_source_map_to_dict(m) for m in record.source_maps],
        "immutableReferences": [
            _immutable_reference_to_dict(r) for r in record.immutable_references
        ],
    }


def validate_compilation_input(data: Dict[str, Any]) -> None:
    """Validate a serialized CompilationInput against the bundled schema.

    Raises:
        jsonschema.ValidationError: If the record does not match.
    """
    jsonschema.validate(instance=data, schema=_get_schema())


# ---------------------------------------------------------------------------
# Entry serialization
# ---------------------------------------------------------------------------


def _source_to_dict(source: Source) -> Dict[str, Any]:
    data: Dict[str, Any] = dict(source.extra)
    data.update({
        "sourcePath": source.source_path,
        "contents": source.contents,
        "language": source.language,
        "ast": source.ast,
        "db": {**source.db_extra, "source": source.db_source.to_dict()},
    })
    if source.legacy_ast is not None:
        data["legacyAST"] = source.legacy_ast
    return data


def _contract_to_dict(contract: Contract) -> Dict[str, Any]:
    db = dict(contract.db_extra)
    for key, ref in (
        ("source", contract.db_source),
        ("callBytecode", contract.db_call_bytecode),
        ("createBytecode", contract.db_create_bytecode),
    ):
        if ref is not None:
            db[key] = ref.to_dict()

    data: Dict[str, Any] = dict(contract.extra)
    data.update({
        "sourcePath": contract.source_path,
        "ast": contract.ast,
        "sourceMap": contract.source_map,
        "deployedSourceMap": contract.deployed_source_map,
        "immutableReferences": {
            ast_node: [{"start": o.start, "length": o.length} for o in offsets]
            for ast_node, offsets in contract.immutable_references.items()
        },
        "db": db,
    })
    return data


def entry_to_dict(entry: CompilationEntry) -> Dict[str, Any]:
    """Serialize a (possibly enriched) CompilationEntry back to JSON form.

    RULES:
    - extra keys come first, known keys overwrite on collision
    - The same holds for every source and contract, and for their db
    - db holds every key accumulated so far, as {"id": ...} objects
    """
    data: Dict[str, Any] = dict(entry.extra)
    data.update({
        "compiler": entry.compiler.to_dict(),
        "sources": [_source_to_dict(s) for s in entry.sources],
        "contracts": [_contract_to_dict(c) for c in entry.contracts],
        "sourceIndexes": list(entry.source_indexes),
        "db": {key: value.to_dict() for key, value in entry.db.items()},
    })
    return data
