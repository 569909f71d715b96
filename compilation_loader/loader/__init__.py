"""Resource loaders: where normalized records get persisted.

WHY: The batch pipeline only needs "persist these records, give me their
ids". This package holds that interface and its two implementations.

HOW: base.py defines the ResourceLoader ABC, the loader errors, and the
shared record serializer. client.py talks to the persistence service
over GraphQL with httpx. memory.py keeps records in-process.

RULES:
- All HTTP calls go through GraphQLResourceLoader (no direct httpx usage elsewhere)
- Every loader serializes with serialize_records
"""

from compilation_loader.loader.base import (
    BatchResultMismatchError,
    LoaderAPIError,
    LoaderError,
    LoaderResponseError,
    ResourceLoader,
)
from compilation_loader.loader.client import GraphQLResourceLoader
from compilation_loader.loader.memory import MemoryResourceLoader

__all__ = [
    "BatchResultMismatchError",
    "GraphQLResourceLoader",
    "LoaderAPIError",
    "LoaderError",
    "LoaderResponseError",
    "MemoryResourceLoader",
    "ResourceLoader",
]
