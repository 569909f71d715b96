"""In-process, content-addressed resource loader.

WHY: Dry runs, the HTTP service without a configured backend, and the
test suite all need a loader that behaves like the persistence service
(same payload, ids derived from content, order preserved) without a
network round trip.

HOW: Records are serialized with serialize_records, so they pass the
same schema check as the GraphQL loader. Each id is "0x" followed by
the SHA-256 of the record's canonical JSON (sorted keys, compact
separators). Stored records live in a per-resource dict.

RULES:
- Identical records get identical ids (the store keeps one copy)
- load() returns ids in record order
- calls counts load() invocations, for tests asserting one-per-batch
- Safe to share between threads
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Any, Dict, List, Sequence

from compilation_loader.core.ir import IdObject
from compilation_loader.loader.base import ResourceLoader, serialize_records

logger = logging.getLogger(__name__)


def content_id(data: Dict[str, Any]) -> str:
    """Return the content address of a serialized record."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return "0x" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class MemoryResourceLoader(ResourceLoader):
    """Content-addressed store shared across event loops.

    RULES:
    - Store and counter mutations hold self._lock (the HTTP service runs
      each background load under its own asyncio.run in a worker thread)
    """

    def __init__(self) -> None:
        self.resources: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls = 0
        self._lock = threading.Lock()

    async def load(self, resource: str, records: Sequence[Any]) -> List[IdObject]:
        payload = serialize_records(resource, records)
        ids = [IdObject(id=content_id(data), resource=resource) for data in payload]

        with self._lock:
            self.calls += 1
            store = self.resources.setdefault(resource, {})
            for record_id, data in zip(ids, payload):
                store.setdefault(record_id.id, data)
            distinct = len(store)

        logger.debug("Stored %d %s (%d distinct)", len(ids), resource, distinct)
        return ids
