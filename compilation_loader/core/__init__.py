"""Core IR, assembly, and wire modules.

WHY: The core package is the stable heart of the loader: the typed
records and the pure functions that turn raw compile output into
normalized CompilationInput records. Batch stages and loaders build on
it and must not leak into it.

HOW: ir.py defines the data structures, assembler.py builds the
normalized record, wire.py converts records to and from JSON and
validates them against the bundled schema.

RULES:
- Nothing in core performs I/O apart from reading the bundled schema
- IR dataclasses are the contract between stages; change with care
"""
