"""Async GraphQL client for the persistence service.

WHY: In production, normalized records are stored by a content-addressed
persistence service with a GraphQL API. Each resource kind has an
add<Kind> mutation that takes a list of inputs and returns the assigned
ids in input order. This module wraps that exchange behind the
ResourceLoader interface.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. GraphQLResourceLoader
is an async context manager: enter it to open the connection pool, exit
to close it. load() serializes and validates the records, posts one
mutation for the whole batch, and maps the returned {id} objects back
to IdObjects.

RULES:
- Always use the async context manager (async with GraphQLResourceLoader() as loader:)
- One HTTP request per load() call, never split or retried
- Non-2xx → LoaderAPIError; GraphQL errors or missing ids → LoaderResponseError
- url defaults to load_loader_url(), token to load_loader_token()
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from compilation_loader.config import (
    COMPILATIONS_RESOURCE,
    DB_LOADER_TIMEOUT_S,
    load_loader_token,
    load_loader_url,
)
from compilation_loader.core.ir import IdObject
from compilation_loader.loader.base import (
    LoaderAPIError,
    LoaderResponseError,
    ResourceLoader,
    serialize_records,
)
from compilation_loader.loader.models import MutationResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

_ADD_COMPILATIONS = """
mutation AddCompilations($compilations: [CompilationInput!]!) {
  addCompilations(input: { compilations: $compilations }) {
    compilations {
      id
    }
  }
}
""".strip()

# resource kind → (mutation document, variable name, mutation field)
_MUTATIONS = {
    COMPILATIONS_RESOURCE: (_ADD_COMPILATIONS, "compilations", "addCompilations"),
}


class GraphQLResourceLoader(ResourceLoader):
    """ResourceLoader backed by the persistence service's GraphQL endpoint.

    RULES:
    - Use as: async with GraphQLResourceLoader() as loader: ...
    - url defaults to DB_LOADER_URL, token to DB_LOADER_TOKEN
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url or load_loader_url()
        self._token = token if token is not None else load_loader_token()
        self._timeout_s = timeout_s if timeout_s is not None else DB_LOADER_TIMEOUT_S
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> GraphQLResourceLoader:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(self._timeout_s, connect=10.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "GraphQLResourceLoader must be used as an async context manager: "
                "async with GraphQLResourceLoader() as loader: ..."
            )
        return self._client

    async def load(self, resource: str, records: Sequence[Any]) -> List[IdObject]:
        """Persist a batch of records with one GraphQL mutation.

        WHY: The service content-addresses each record and returns its
        id. Sending the whole batch in one mutation keeps ids aligned
        with records and makes the batch succeed or fail as a unit.

        HOW: Serialize and schema-check the records, post the mutation,
        then parse data.<field>.<variable> into IdObjects.

        Raises:
            ValueError: Unsupported resource kind.
            jsonschema.ValidationError: A record failed schema validation.
            LoaderAPIError: Non-2xx HTTP status.
            LoaderResponseError: GraphQL errors or a malformed payload.
            httpx.HTTPError: Transport failure.
        """
        client = self._ensure_client()
        payload = serialize_records(resource, records)
        if not payload:
            return []

        mutation, variable, field_name = _MUTATIONS[resource]
        logger.debug("Loading %d %s via %s", len(payload), resource, self._url)

        resp = await client.post(
            self._url,
            json={"query": mutation, "variables": {variable: payload}},
        )

        if not resp.is_success:
            raise LoaderAPIError(resp.status_code, resp.text)

        try:
            body: Dict[str, Any] = resp.json()
        except ValueError as exc:
            raise LoaderResponseError("Response is not JSON: {}".format(exc)) from exc

        response = MutationResponse.from_dict(body, field_name, variable)
        if response.errors:
            raise LoaderResponseError(
                "Persistence service rejected {}: {}".format(
                    resource, "; ".join(response.errors)
                )
            )

        return [IdObject(id=i, resource=resource) for i in response.ids]
