"""Compilation Loader — normalize compiler output and load it into a
content-addressed persistence layer.

WHY: A compile step produces a compiler descriptor, a bag of source
records, a bag of contract records, and a canonical source order. The
persistence layer wants one strict record per compilation, with arrays
aligned to the source order or flattened across contracts. This package
builds those records and drives their batched load.

HOW: Three-stage pipeline per batch — extract (core assembler builds a
CompilationInput per entry), process (one awaited loader call for the
whole batch), convert (each assigned id is merged into its entry's db
namespace). Each stage is independently testable.

RULES:
- Normalization is pure; the loader call is the only await
- Ids are matched to entries by batch position
- A failed load aborts the whole batch
"""

__version__ = "0.1.0"
