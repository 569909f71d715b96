"""In-memory job store for background compilation loads with TTL cleanup.

WHY: Loading a batch waits on the persistence service, so the HTTP API
returns a job ID immediately and runs the batch in the background.
Callers poll the job until it completes or fails. An in-memory store is
enough: a lost job is simply resubmitted, and loading is idempotent
because the service content-addresses records.

HOW: Three components work together:
  JobStatus  — enum of valid job states
  Job        — dataclass holding the submitted entries, status, and results
  JobStore   — thread-safe dict-based store with create/update/get/list/delete
               and TTL cleanup

RULES:
- All store mutations are protected by threading.Lock for thread safety
- results is only set on COMPLETED; a FAILED job never carries results
- TTL-based expiry removes finished jobs
- Job IDs are UUID4 hex strings generated at creation time
- Default TTL is 1 hour (3600 seconds)
"""

from __future__ import annotations

import enum
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from compilation_loader.core.ir import CompilationEntry

logger = logging.getLogger(__name__)

# Default time-to-live for completed/failed jobs (seconds)
DEFAULT_TTL_SECONDS = 3600


class JobStatus(str, enum.Enum):
    """Valid states for a compilation load job.

    RULES:
    - pending: job created, not yet started
    - extracting: building normalized records
    - loading: waiting on the persistence service
    - converting: merging assigned ids into the entries
    - completed: every entry has its compilation id
    - failed: the batch was aborted, no entry has an id
    """

    PENDING = "pending"
    EXTRACTING = "extracting"
    LOADING = "loading"
    CONVERTING = "converting"
    COMPLETED = "completed"
    FAILED = "failed"


_TERMINAL = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class Job:
    """Metadata and state for a single load job.

    RULES:
    - entries: the parsed entries submitted with the job
    - results: enriched entries as JSON dicts, only when COMPLETED
    - completed_at: epoch timestamp of the terminal transition, or None
    - error: error message if status is FAILED, else None
    """

    id: str
    status: JobStatus
    entries: List[CompilationEntry]
    created_at: float
    updated_at: float
    completed_at: Optional[float] = None
    error: Optional[str] = None
    results: List[Dict[str, Any]] = field(default_factory=list)


class JobStore:
    """Thread-safe in-memory store for load jobs.

    RULES:
    - All public methods that mutate state acquire self._lock
    - create_job() raises ValueError when max_jobs is reached
    - get_job() returns None for missing job IDs (no exceptions)
    - cleanup_expired() removes terminal jobs older than the TTL
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_jobs: int = 100,
    ) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_jobs = max_jobs

    def create_job(self, entries: List[CompilationEntry]) -> Job:
        """Create a new job in PENDING state."""
        with self._lock:
            if len(self._jobs) >= self.max_jobs:
                raise ValueError(
                    "Maximum number of concurrent jobs ({}) reached".format(
                        self.max_jobs
                    )
                )

            job_id = uuid.uuid4().hex
            now = time.time()
            job = Job(
                id=job_id,
                status=JobStatus.PENDING,
                entries=list(entries),
                created_at=now,
                updated_at=now,
            )
            self._jobs[job_id] = job

        logger.info("Created job %s for %d compilation(s)", job_id, len(entries))
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> List[Job]:
        """Return all jobs ordered by creation time (oldest first)."""
        with self._lock:
            return sorted(self._jobs.values(), key=lambda j: j.created_at)

    def update_job(
        self,
        job_id: str,
        status: Optional[JobStatus] = None,
        error: Optional[str] = None,
        results: Optional[List[Dict[str, Any]]] = None,
    ) -> Optional[Job]:
        """Update a job's mutable fields.

        RULES:
        - Returns the updated Job, or None if job_id not found
        - Only non-None arguments are applied
        - updated_at is always bumped
        - completed_at is set when status becomes COMPLETED or FAILED
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None

            now = time.time()

            if status is not None:
                job.status = status
            if error is not None:
                job.error = error
            if results is not None:
                job.results = results

            job.updated_at = now

            if job.status in _TERMINAL:
                job.completed_at = now

            return job

    def delete_job(self, job_id: str) -> bool:
        """Delete a job. Returns True if it existed."""
        with self._lock:
            job = self._jobs.pop(job_id, None)

        if job is None:
            return False

        logger.info("Deleted job %s", job_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove terminal jobs whose completed_at is older than the TTL.

        Returns the count of removed jobs.
        """
        now = time.time()
        expired: List[Job] = []

        with self._lock:
            for job_id, job in list(self._jobs.items()):
                if job.status not in _TERMINAL or job.completed_at is None:
                    continue
                if now - job.completed_at > self._ttl_seconds:
                    expired.append(self._jobs.pop(job_id))

        for job in expired:
            logger.info("Expired job %s (completed %.0fs ago)", job.id, now - job.completed_at)

        return len(expired)
