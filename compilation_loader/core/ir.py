"""Intermediate representation dataclasses for compiler artifacts and
normalized compilation records.

WHY: The compile step hands us loosely-typed JSON: a compiler descriptor,
a bag of per-file source records, a bag of per-contract records, and the
canonical source index ordering. The persistence layer wants one strict
record per compilation. The IR gives both sides a typed shape so the
assembler can correlate and flatten without guessing at dict keys.

HOW: Two families of dataclasses:
  Raw side        — Compiler, Source, Contract, CompilationEntry
                    (parsed from camelCase JSON via from_dict)
  Normalized side — ProcessedSourceInput, SourceMapInput,
                    ImmutableReferenceInput, CompilationInput
                    (built by the assembler, serialized by core.wire)
IdObject is shared by both: an opaque reference to a persisted resource.

RULES:
- Input records are never mutated after parsing
- Positional gaps are None, never omitted
- AstPayload is the only place an AST becomes text
- CompilationEntry.db is replaced, not updated, when a pass adds a key
- Unknown keys on entries, sources and contracts (and unknown db keys on
  sources and contracts) survive the round trip via ``extra``/``db_extra``
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class IdObject:
    """Reference to a resource already persisted by the loader.

    WHY: The loader assigns identifiers; nothing downstream interprets
    them beyond identity. The resource tag only records which table the
    id came from ("sources", "bytecodes", "compilations").

    RULES:
    - id is opaque
    - resource is informational and never sent over the wire
    """

    id: str
    resource: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], resource: Optional[str] = None) -> Optional[IdObject]:
        if data is None:
            return None
        return cls(id=data["id"], resource=resource)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id}


@dataclass(frozen=True)
class Compiler:
    """Compiler name and version, e.g. solc 0.8.0."""

    name: str
    version: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Compiler:
        return cls(name=data["name"], version=data["version"])

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "version": self.version}


# Keys the from_dict parsers understand, at the top level and inside db;
# everything else lands in extra or db_extra.
_SOURCE_KEYS = frozenset({"sourcePath", "contents", "language", "ast", "legacyAST", "db"})
_SOURCE_DB_KEYS = frozenset({"source"})
_CONTRACT_KEYS = frozenset({
    "sourcePath", "ast", "sourceMap", "deployedSourceMap", "immutableReferences", "db",
})
_CONTRACT_DB_KEYS = frozenset({"source", "callBytecode", "createBytecode"})
_ENTRY_KEYS = frozenset({"compiler", "sources", "contracts", "sourceIndexes", "db"})


def _unknown(data: Mapping[str, Any], known: frozenset) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


@dataclass
class Source:
    """One compiled source file.

    WHY: Sources are keyed by path within a compilation. The persistence
    step that ran before us already stored the file contents and left
    the assigned reference in db.source.

    RULES:
    - source_path is the join key against source_indexes and contracts
    - ast is any JSON value, or None when the compiler emitted none
    - language is passed through as given, None included
    - db_source is the IdObject of kind "sources"
    - Other keys (top level and under db) are kept verbatim for the round trip
    """

    source_path: str
    contents: str
    language: Optional[str]
    db_source: IdObject
    ast: Any = None
    legacy_ast: Any = None
    db_extra: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Source:
        """Parse a Source from the compile step's JSON.

        RULES:
        - sourcePath and db.source are required
        - contents defaults to "" and language to "" when missing
        """
        db = data["db"]
        return cls(
            source_path=data["sourcePath"],
            contents=data.get("contents", ""),
            language=data.get("language", ""),
            db_source=IdObject.from_dict(db["source"], "sources"),
            ast=data.get("ast"),
            legacy_ast=data.get("legacyAST"),
            db_extra=_unknown(db, _SOURCE_DB_KEYS),
            extra=_unknown(data, _SOURCE_KEYS),
        )


@dataclass(frozen=True)
class ImmutableReferenceOffset:
    """One occurrence of an immutable variable inside deployed bytecode."""

    start: int
    length: int


@dataclass
class Contract:
    """One compiled contract with its already-persisted bytecode refs.

    RULES:
    - source_map pairs with db_create_bytecode
    - deployed_source_map pairs with db_call_bytecode
    - immutable_references maps an AST node id (string) to its offsets,
      in the order the compiler listed them
    - Missing maps parse as "" and a missing reference table as {}
    - contractName, abi, bytecode and any other key ride along in extra;
      db keys from other passes ride along in db_extra
    """

    source_path: str
    db_source: Optional[IdObject] = None
    db_call_bytecode: Optional[IdObject] = None
    db_create_bytecode: Optional[IdObject] = None
    ast: Any = None
    source_map: str = ""
    deployed_source_map: str = ""
    immutable_references: Dict[str, List[ImmutableReferenceOffset]] = field(default_factory=dict)
    db_extra: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Contract:
        db = data.get("db") or {}
        references = data.get("immutableReferences") or {}
        return cls(
            source_path=data["sourcePath"],
            db_source=IdObject.from_dict(db.get("source"), "sources"),
            db_call_bytecode=IdObject.from_dict(db.get("callBytecode"), "bytecodes"),
            db_create_bytecode=IdObject.from_dict(db.get("createBytecode"), "bytecodes"),
            ast=data.get("ast"),
            source_map=data.get("sourceMap") or "",
            deployed_source_map=data.get("deployedSourceMap") or "",
            immutable_references={
                str(ast_node): [
                    ImmutableReferenceOffset(start=o["start"], length=o["length"])
                    for o in offsets
                ]
                for ast_node, offsets in references.items()
            },
            db_extra=_unknown(db, _CONTRACT_DB_KEYS),
            extra=_unknown(data, _CONTRACT_KEYS),
        )




@dataclass
class CompilationEntry:
    """Raw input unit: everything the compile step produced for one compilation.

    WHY: The batch pipeline carries the entry through extract and convert.
    Each loading pass (sources, bytecodes, compilations, contracts) adds
    its own key under db without touching the others.

    HOW: from_dict parses the known keys into typed records and keeps the
    rest verbatim in extra, so that serializing the enriched entry gives
    back the caller's object plus the new db key.

    RULES:
    - source_indexes defines the canonical order for this compilation
    - sources and contracts are unordered collections
    - db maps pass name → IdObject; treat it as read-only
    """

    compiler: Compiler
    sources: List[Source]
    contracts: List[Contract]
    source_indexes: List[str]
    db: Mapping[str, IdObject] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CompilationEntry:
        return cls(
            compiler=Compiler.from_dict(data["compiler"]),
            sources=[Source.from_dict(s) for s in data.get("sources") or []],
            contracts=[Contract.from_dict(c) for c in data.get("contracts") or []],
            source_indexes=list(data.get("sourceIndexes") or []),
            db={
                key: IdObject.from_dict(value)
                for key, value in (data.get("db") or {}).items()
                if value is not None
            },
            extra=_unknown(data, _ENTRY_KEYS),
        )


# ---------------------------------------------------------------------------
# Normalized records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AstPayload:
    """An AST carried as JSON text.

    WHY: The persistence layer stores ASTs as opaque JSON strings and
    content-addresses the whole record, so the text must be stable.

    HOW: from_value serializes with compact separators, which is
    byte-for-byte what JSON.stringify emits for the same tree.
    """

    json: str

    @classmethod
    def from_value(cls, value: Any) -> AstPayload:
        return cls(json=json.dumps(value, separators=(",", ":"), ensure_ascii=False))



@dataclass(frozen=True)
class ProcessedSourceInput:
    source: IdObject
    ast: Optional[AstPayload]
    language: Optional[str]


@dataclass(frozen=True)
class SourceMapInput:
    bytecode: Optional[IdObject]
    data: str


@dataclass(frozen=True)
class ImmutableReferenceInput:
    ast_node: str
    bytecode: Optional[IdObject]
    length: int
    offsets: List[int]


@dataclass
class CompilationInput:
    """The normalized compilation record handed to the loader.

    RULES:
    - processed_sources and sources have len(source_indexes) slots
    - slot i describes source_indexes[i], or is None if no source matched
    - source_maps and immutable_references are flat, compilation-scoped
    """

    compiler: Compiler
    processed_sources: List[Optional[ProcessedSourceInput]]
    sources: List[Optional[IdObject]]
    source_maps: List[SourceMapInput]
    immutable_references: List[ImmutableReferenceInput]
