"""Unit tests for the in-memory job store.

WHY: The job store is the central state manager for the HTTP API.
Incorrect status transitions or missing cleanup would leave clients
polling stale jobs or let finished jobs pile up forever.

HOW: Tests are organized by class, one per JobStore method or concern:
  - TestJobCreation: create_job basics and the max_jobs limit
  - TestJobRetrieval: get_job and list_jobs
  - TestJobUpdate: status transitions, errors, results, terminal states
  - TestJobDeletion: delete semantics
  - TestTTLCleanup: expiry logic and boundary conditions
  - TestThreadSafety: concurrent access doesn't corrupt state

RULES:
- Each test creates its own JobStore instance (no shared mutable state)
- Time-dependent tests use monkeypatch to control time.time()
"""

from __future__ import annotations

import threading
import time

import pytest

from compilation_loader.server.jobs import (
    DEFAULT_TTL_SECONDS,
    JobStatus,
    JobStore,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_store(**kwargs) -> JobStore:
    """Create a JobStore with optional overrides."""
    return JobStore(**kwargs)


# ---------------------------------------------------------------------------
# TestJobCreation
# ---------------------------------------------------------------------------


class TestJobCreation:
    """JobStore.create_job() creates a job in PENDING state."""

    def test_creates_job_with_pending_status(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])

        assert job.status == JobStatus.PENDING
        assert job.entries == [compilation_entry]
        assert job.error is None
        assert job.results == []
        assert job.completed_at is None

    def test_job_id_is_hex_uuid(self, compilation_entry):
        job = _make_store().create_job([compilation_entry])
        assert len(job.id) == 32
        int(job.id, 16)

    def test_entries_list_is_copied(self, compilation_entry):
        entries = [compilation_entry]
        job = _make_store().create_job(entries)
        entries.clear()
        assert len(job.entries) == 1

    def test_max_jobs_limit(self, compilation_entry):
        store = _make_store(max_jobs=2)
        store.create_job([compilation_entry])
        store.create_job([compilation_entry])
        with pytest.raises(ValueError, match="Maximum number of concurrent jobs"):
            store.create_job([compilation_entry])

    def test_default_ttl(self):
        assert DEFAULT_TTL_SECONDS == 3600


# ---------------------------------------------------------------------------
# TestJobRetrieval
# ---------------------------------------------------------------------------


class TestJobRetrieval:
    def test_get_existing_job(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])
        assert store.get_job(job.id) is job

    def test_get_missing_job_returns_none(self):
        assert _make_store().get_job("nope") is None

    def test_list_jobs_oldest_first(self, compilation_entry, monkeypatch):
        store = _make_store()
        monkeypatch.setattr(time, "time", lambda: 200.0)
        newer = store.create_job([compilation_entry])
        monkeypatch.setattr(time, "time", lambda: 100.0)
        older = store.create_job([compilation_entry])

        assert [j.id for j in store.list_jobs()] == [older.id, newer.id]


# ---------------------------------------------------------------------------
# TestJobUpdate
# ---------------------------------------------------------------------------


class TestJobUpdate:
    def test_stage_transitions(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])

        for status in (JobStatus.EXTRACTING, JobStatus.LOADING, JobStatus.CONVERTING):
            store.update_job(job.id, status=status)
            assert store.get_job(job.id).status == status
            assert store.get_job(job.id).completed_at is None

    def test_completed_sets_results_and_completed_at(self, compilation_entry, monkeypatch):
        store = _make_store()
        job = store.create_job([compilation_entry])

        monkeypatch.setattr(time, "time", lambda: 500.0)
        store.update_job(job.id, status=JobStatus.COMPLETED, results=[{"db": {}}])

        updated = store.get_job(job.id)
        assert updated.results == [{"db": {}}]
        assert updated.completed_at == 500.0
        assert updated.updated_at == 500.0

    def test_failed_sets_error(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])
        store.update_job(job.id, status=JobStatus.FAILED, error="service down")

        updated = store.get_job(job.id)
        assert updated.status == JobStatus.FAILED
        assert updated.error == "service down"
        assert updated.results == []
        assert updated.completed_at is not None

    def test_none_arguments_are_ignored(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])
        store.update_job(job.id, status=JobStatus.LOADING)
        store.update_job(job.id)
        assert store.get_job(job.id).status == JobStatus.LOADING

    def test_update_missing_job_returns_none(self):
        assert _make_store().update_job("nope", status=JobStatus.LOADING) is None

    def test_status_values_match_stage_names(self):
        assert JobStatus("extracting") is JobStatus.EXTRACTING
        assert JobStatus("loading") is JobStatus.LOADING
        assert JobStatus("converting") is JobStatus.CONVERTING


# ---------------------------------------------------------------------------
# TestJobDeletion
# ---------------------------------------------------------------------------


class TestJobDeletion:
    def test_delete_existing_job(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])
        assert store.delete_job(job.id) is True
        assert store.get_job(job.id) is None

    def test_delete_missing_job(self):
        assert _make_store().delete_job("nope") is False

    def test_delete_frees_a_slot(self, compilation_entry):
        store = _make_store(max_jobs=1)
        job = store.create_job([compilation_entry])
        store.delete_job(job.id)
        store.create_job([compilation_entry])


# ---------------------------------------------------------------------------
# TestTTLCleanup
# ---------------------------------------------------------------------------


class TestTTLCleanup:
    """JobStore.cleanup_expired() removes terminal jobs past their TTL."""

    def test_cleanup_removes_expired_completed_job(self, compilation_entry, monkeypatch):
        store = _make_store(ttl_seconds=60)
        job = store.create_job([compilation_entry])

        monkeypatch.setattr(time, "time", lambda: 100.0)
        store.update_job(job.id, status=JobStatus.COMPLETED)

        monkeypatch.setattr(time, "time", lambda: 161.0)
        assert store.cleanup_expired() == 1
        assert store.get_job(job.id) is None

    def test_cleanup_removes_expired_failed_job(self, compilation_entry, monkeypatch):
        store = _make_store(ttl_seconds=60)
        job = store.create_job([compilation_entry])

        monkeypatch.setattr(time, "time", lambda: 100.0)
        store.update_job(job.id, status=JobStatus.FAILED, error="err")

        monkeypatch.setattr(time, "time", lambda: 161.0)
        assert store.cleanup_expired() == 1

    def test_cleanup_keeps_non_expired_job(self, compilation_entry, monkeypatch):
        store = _make_store(ttl_seconds=60)
        job = store.create_job([compilation_entry])

        monkeypatch.setattr(time, "time", lambda: 100.0)
        store.update_job(job.id, status=JobStatus.COMPLETED)

        monkeypatch.setattr(time, "time", lambda: 159.0)
        assert store.cleanup_expired() == 0
        assert store.get_job(job.id) is not None

    def test_cleanup_skips_running_jobs(self, compilation_entry, monkeypatch):
        store = _make_store(ttl_seconds=60)
        monkeypatch.setattr(time, "time", lambda: 100.0)
        job = store.create_job([compilation_entry])
        store.update_job(job.id, status=JobStatus.LOADING)

        monkeypatch.setattr(time, "time", lambda: 10_000.0)
        assert store.cleanup_expired() == 0
        assert store.get_job(job.id).status == JobStatus.LOADING


# ---------------------------------------------------------------------------
# TestThreadSafety
# ---------------------------------------------------------------------------


class TestThreadSafety:
    """Concurrent access to JobStore doesn't corrupt state."""

    def test_concurrent_creates(self, compilation_entry):
        store = _make_store(max_jobs=200)
        errors = []

        def create_job():
            try:
                store.create_job([compilation_entry])
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=create_job) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(store.list_jobs()) == 50

    def test_concurrent_updates(self, compilation_entry):
        store = _make_store()
        job = store.create_job([compilation_entry])

        def update(status):
            store.update_job(job.id, status=status)

        threads = [
            threading.Thread(target=update, args=(s,))
            for s in (JobStatus.EXTRACTING, JobStatus.LOADING, JobStatus.CONVERTING) * 10
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get_job(job.id).status in (
            JobStatus.EXTRACTING, JobStatus.LOADING, JobStatus.CONVERTING,
        )
