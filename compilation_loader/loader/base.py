"""Resource loader interface, loader errors, and record serialization.

WHY: The batch pipeline hands normalized records to "something that
persists them and returns ids". That something is a GraphQL service in
production and an in-process dict in tests and dry runs. A small ABC
lets the pipeline await either without knowing which.

HOW: ResourceLoader declares one coroutine, load(resource, records).
serialize_records turns IR records into validated wire dicts so every
loader sends exactly the same payload for the same input.

RULES:
- load() returns one IdObject per record, in record order
- load() raises (never returns partial results) on failure
- No loader retries; callers see the first failure
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Sequence, Tuple

from compilation_loader.config import COMPILATIONS_RESOURCE
from compilation_loader.core.ir import IdObject
from compilation_loader.core.wire import (
    compilation_input_to_dict,
    validate_compilation_input,
)


class LoaderError(Exception):
    """Base class for failures reported by or about a resource loader."""


class LoaderAPIError(LoaderError):
    """Raised when the persistence service answers with a non-2xx status.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Persistence service error {status_code}: {message}")


class LoaderResponseError(LoaderError):
    """Raised when the service reports GraphQL errors or returns a payload
    that does not contain the expected ids."""


class BatchResultMismatchError(LoaderError):
    """Raised when a loader returns a different number of ids than records."""

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Loader returned {} identifiers for a batch of {} records".format(
                actual, expected
            )
        )


# resource kind → (to wire dict, validate wire dict)
_SERIALIZERS: Dict[str, Tuple[Callable[[Any], Dict[str, Any]], Callable[[Dict[str, Any]], None]]] = {
    COMPILATIONS_RESOURCE: (compilation_input_to_dict, validate_compilation_input),
}


def supported_resources() -> List[str]:
    return sorted(_SERIALIZERS)


def serialize_records(resource: str, records: Sequence[Any]) -> List[Dict[str, Any]]:
    """Convert IR records of one resource kind to validated wire dicts.

    Raises:
        ValueError: If the resource kind has no serializer.
        jsonschema.ValidationError: If a record fails schema validation.
    """
    if resource not in _SERIALIZERS:
        raise ValueError(
            "Unsupported resource kind '{}'. Supported: {}".format(
                resource, ", ".join(supported_resources())
            )
        )

    to_dict, validate = _SERIALIZERS[resource]
    payload = []
    for record in records:
        data = to_dict(record)
        validate(data)
        payload.append(data)
    return payload


class ResourceLoader(ABC):
    """Abstract base for anything that persists records and assigns ids.

    To add a new loader:
    1. Subclass ResourceLoader
    2. Implement the load() coroutine
    3. Serialize with serialize_records() so payloads stay identical
    """

    @abstractmethod
    async def load(self, resource: str, records: Sequence[Any]) -> List[IdObject]:
        """Persist records of one resource kind.

        Args:
            resource: Resource kind, e.g. "compilations".
            records: IR records, all of that kind.

        Returns:
            One IdObject per record, in the same order.
        """
