"""FastAPI application for submitting and polling compilation loads.

WHY: Build tooling that is not written in Python (or runs elsewhere)
needs to hand compilations to the loader over HTTP. FastAPI provides
request validation, generated OpenAPI docs, and background tasks.

HOW: POST /compilations parses the entries, creates a job, and runs the
compilations pass in the background. Clients poll GET
/compilations/{id} until the job completes (enriched entries returned)
or fails (error returned, no entry enriched).

RULES:
- Entries that fail to parse are rejected with 400 before a job exists
- The loader is the GraphQL service when DB_LOADER_URL is set,
  otherwise the process-wide in-memory loader
- A failed batch marks the job failed; results stay empty
- Error responses use a consistent ErrorResponse schema
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import Response

from compilation_loader import __version__
from compilation_loader.batch import BATCHES, run_batch
from compilation_loader.config import COMPILATIONS_RESOURCE, loader_configured
from compilation_loader.core.ir import CompilationEntry
from compilation_loader.core.wire import entry_to_dict
from compilation_loader.loader.client import GraphQLResourceLoader
from compilation_loader.loader.memory import MemoryResourceLoader
from compilation_loader.server.jobs import Job, JobStatus, JobStore
from compilation_loader.server.models import (
    ErrorResponse,
    HealthResponse,
    JobCreatedResponse,
    JobResponse,
    LoadRequest,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

job_store = JobStore()
memory_loader = MemoryResourceLoader()


async def _periodic_cleanup() -> None:
    """Run job cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        job_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Compilation Loader API",
    description=(
        "Normalize compiler output into compilation records and load them "
        "into the content-addressed persistence service. Submit a batch, "
        "poll for status, and read back the entries with their compilation ids."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _job_to_response(job: Job) -> JobResponse:
    """Convert an internal Job dataclass to a JobResponse Pydantic model."""
    return JobResponse(
        id=job.id,
        status=job.status.value,
        created_at=job.created_at,
        count=len(job.entries),
        error=job.error,
        compilations=job.results if job.status == JobStatus.COMPLETED else None,
    )


async def _run_load_pipeline(job_id: str, store: JobStore) -> None:
    """Run the compilations pass for a job.

    RULES:
    - Mirrors run_batch stages into the job status
    - Catches all exceptions and marks the job failed with no results
    """
    job = store.get_job(job_id)
    if job is None:
        return

    batch = BATCHES[COMPILATIONS_RESOURCE]()

    def on_status(stage: str) -> None:
        store.update_job(job_id, status=JobStatus(stage))

    try:
        if loader_configured():
            async with GraphQLResourceLoader() as loader:
                enriched = await run_batch(batch, job.entries, loader, on_status=on_status)
        else:
            enriched = await run_batch(batch, job.entries, memory_loader, on_status=on_status)

        store.update_job(
            job_id,
            status=JobStatus.COMPLETED,
            results=[entry_to_dict(entry) for entry in enriched],
        )
    except Exception as exc:
        logger.exception("Compilation load failed for job %s", job_id)
        store.update_job(job_id, status=JobStatus.FAILED, error=str(exc))


def _run_load_sync(job_id: str, store: JobStore) -> None:
    """Synchronous wrapper so BackgroundTasks can run the async pipeline."""
    asyncio.run(_run_load_pipeline(job_id, store))


# ---------------------------------------------------------------------------
# Endpoints: Compilations
# ---------------------------------------------------------------------------


@app.post(
    "/compilations",
    response_model=JobCreatedResponse,
    status_code=201,
    tags=["compilations"],
    summary="Submit a batch of compilations",
    description=(
        "Parse the compilation entries and load them as one batch in the "
        "background. Poll GET /compilations/{id} for status."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "An entry could not be parsed"},
        429: {"model": ErrorResponse, "description": "Too many concurrent jobs"},
    },
)
async def create_load(
    request: LoadRequest,
    background_tasks: BackgroundTasks,
) -> JobCreatedResponse:
    entries = []
    for index, item in enumerate(request.compilations):
        try:
            entries.append(CompilationEntry.from_dict(item))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise HTTPException(
                status_code=400,
                detail="Invalid compilation at index {}: {!r}".format(index, exc),
            )

    try:
        job = job_store.create_job(entries)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))

    background_tasks.add_task(_run_load_sync, job.id, job_store)

    return JobCreatedResponse(
        id=job.id,
        status=job.status.value,
        count=len(entries),
    )


@app.get(
    "/compilations",
    response_model=List[JobResponse],
    tags=["compilations"],
    summary="List load jobs",
    description="Returns every job still held by the store, oldest first.",
)
async def list_loads() -> List[JobResponse]:
    return [_job_to_response(job) for job in job_store.list_jobs()]


@app.get(
    "/compilations/{job_id}",
    response_model=JobResponse,
    tags=["compilations"],
    summary="Get load job status",
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def get_load(job_id: str) -> JobResponse:
    job = job_store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return _job_to_response(job)


@app.delete(
    "/compilations/{job_id}",
    status_code=204,
    tags=["compilations"],
    summary="Delete a load job",
    responses={
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
async def delete_load(job_id: str) -> Response:
    deleted = job_store.delete_job(job_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Job not found: {}".format(job_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        loader="graphql" if loader_configured() else "memory",
    )


def run_api():
    """Entry point for the compilation-loader-api console script."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
