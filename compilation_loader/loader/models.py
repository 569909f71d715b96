"""GraphQL mutation response dataclass.

WHY: The service answers every add<Kind> mutation with the same
envelope: {"data": {field: {variable: [{id}, ...]}}} on success, or an
"errors" list. A typed parse keeps the client free of nested dict
lookups and turns a malformed payload into a clear error.

RULES:
- errors holds the message of every GraphQL error, possibly empty
- ids is empty when errors is non-empty
- A success envelope without the expected path raises LoaderResponseError
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping

from compilation_loader.loader.base import LoaderResponseError


@dataclass
class MutationResponse:
    ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], field_name: str, variable: str) -> MutationResponse:
        """Parse a mutation response envelope.

        Args:
            data: Decoded JSON body.
            field_name: Mutation field, e.g. "addCompilations".
            variable: Result list key, e.g. "compilations".
        """
        errors = data.get("errors") or []
        if errors:
            return cls(errors=[
                str(e.get("message", e)) if isinstance(e, Mapping) else str(e)
                for e in errors
            ])

        try:
            items = data["data"][field_name][variable]
            ids = [item["id"] for item in items]
        except (KeyError, TypeError) as exc:
            raise LoaderResponseError(
                "Malformed {} response: missing {}".format(field_name, exc)
            ) from exc

        return cls(ids=ids)
