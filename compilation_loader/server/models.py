"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and the generated OpenAPI docs.

HOW: One model per request or response body. Compilation entries are
accepted as free-form JSON objects here; the IR parsers do the real
parsing so the HTTP and CLI paths share one code path.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Response models never expose internal dataclasses
- Python 3.9+ compatible (use Optional/List from typing)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoadRequest(BaseModel):
    """Compilations to normalize and load as one batch."""

    compilations: List[Dict[str, Any]] = Field(
        min_length=1,
        description=(
            "Compilation entries: {compiler, sources, contracts, sourceIndexes, db?}. "
            "Sources and contracts must already carry their db references."
        ),
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class JobResponse(BaseModel):
    """Load job status response.

    RULES:
    - error is only set when status is 'failed'
    - compilations is only populated when status is 'completed'
    """

    id: str = Field(description="Unique job identifier.")
    status: str = Field(description="Current job status.")
    created_at: float = Field(description="Job creation timestamp (Unix epoch seconds).")
    count: int = Field(description="Number of compilations submitted.")
    error: Optional[str] = Field(
        default=None,
        description="Error message, only present when status is 'failed'.",
    )
    compilations: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Enriched entries with db.compilation, only present when status is 'completed'.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "status": "loading",
                "created_at": 1739959200.0,
                "count": 2,
                "error": None,
                "compilations": None,
            }
        ]
    }}


class JobCreatedResponse(BaseModel):
    id: str = Field(description="Unique job identifier for polling status.")
    status: str = Field(description="Initial job status (always 'pending').")
    count: int = Field(description="Number of compilations submitted.")


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    loader: str = Field(
        description="Loader backing this service: 'graphql' or 'memory'.",
        json_schema_extra={"example": "graphql"},
    )
