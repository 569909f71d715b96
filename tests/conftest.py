"""Shared test fixtures for the compilation_loader test suite.

WHY: Most test modules need the same small compilation: two Solidity
sources (one with an AST, one without) and one contract carrying both
source maps and an immutable reference table. Centralizing the raw JSON
keeps every module testing against the same shape the compile step
actually emits.

HOW: Module-level dicts hold the raw camelCase records. Fixtures hand
out deep copies so a test can edit its copy freely.

RULES:
- Raw records use the compile step's JSON keys (sourcePath, db.source, ...)
- Ids are short readable strings (s1, s2, create-a, call-a)
- Fixtures never share mutable state between tests
"""

import copy
from typing import Any, Dict

import pytest

from compilation_loader.core.ir import CompilationEntry


SOURCE_A: Dict[str, Any] = {
    "sourcePath": "A.sol",
    "contents": "pragma solidity ^0.8.0; contract A { uint immutable x = 1; }",
    "language": "Solidity",
    "ast": {"nodeType": "SourceUnit", "id": 1, "absolutePath": "A.sol"},
    "legacyAST": None,
    "db": {"source": {"id": "s1"}},
}

SOURCE_B: Dict[str, Any] = {
    "sourcePath": "B.sol",
    "contents": "pragma solidity ^0.8.0; library B {}",
    "language": "Solidity",
    "ast": None,
    "legacyAST": None,
    "db": {"source": {"id": "s2"}},
}

CONTRACT_A: Dict[str, Any] = {
    "sourcePath": "A.sol",
    "ast": {"nodeType": "SourceUnit", "id": 1},
    "sourceMap": "0:62:0:-:0;;;;",
    "deployedSourceMap": "0:62:0:-:0;;;",
    "immutableReferences": {
        "12": [{"start": 4, "length": 32}, {"start": 68, "length": 32}],
    },
    "db": {
        "source": {"id": "s1"},
        "callBytecode": {"id": "call-a"},
        "createBytecode": {"id": "create-a"},
    },
}

COMPILATION: Dict[str, Any] = {
    "id": "compilation-1",
    "compiler": {"name": "solc", "version": "0.8.0"},
    "sources": [SOURCE_A, SOURCE_B],
    "contracts": [CONTRACT_A],
    "sourceIndexes": ["A.sol", "B.sol"],
    "db": {"project": {"id": "p1"}},
}


@pytest.fixture
def compilation_dict():
    """Raw compilation entry with two sources and one contract."""
    return copy.deepcopy(COMPILATION)


@pytest.fixture
def source_only_dict():
    """Raw compilation entry from the A.sol/B.sol example, no contracts."""
    data = copy.deepcopy(COMPILATION)
    data["contracts"] = []
    del data["db"]
    del data["id"]
    return data


@pytest.fixture
def compilation_entry(compilation_dict):
    """Parsed CompilationEntry for compilation_dict."""
    return CompilationEntry.from_dict(compilation_dict)
