"""In-memory repositories used by the API scaffold and tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from itertools import count
from threading import RLock
from typing import Any
from typing import Literal

from docingest.schemas.auth import UserRole
from docingest.schemas.job import JobStatus

_MUTABLE_JOB_FIELDS = frozenset({"status", "completed_at", "output"})


@dataclass(slots=True)
class UserRecord:
    id: int
    email: str
    role: UserRole
    is_active: bool = True


@dataclass(slots=True)
class DocumentRecord:
    id: int
    title: str
    owner_id: int
    created_at: datetime
    description: str | None = None


@dataclass(slots=True)
class JobRecord:
    id: int
    document_id: int
    started_by_id: int
    status: JobStatus
    started_at: datetime
    completed_at: datetime | None = None
    output: str | None = None


@dataclass(slots=True, frozen=True)
class JobUpdateResult:
    """Outcome of a guarded job write; ``job`` is the current snapshot when one exists."""

    outcome: Literal["applied", "conflict", "not_found"]
    job: JobRecord | None = None

    @property
    def applied(self) -> bool:
        return self.outcome == "applied"


@dataclass(slots=True)
class InMemoryStore:
    """Thread-safe persistence double for users, documents and ingestion jobs.

    Every read hands back a copy and every write happens under one lock, so the
    request path and background workers can share a single instance.
    """

    users: dict[int, UserRecord] = field(default_factory=dict)
    documents: dict[int, DocumentRecord] = field(default_factory=dict)
    jobs: dict[int, JobRecord] = field(default_factory=dict)
    job_write_count: int = 0
    _lock: RLock = field(default_factory=RLock, repr=False)
    _user_ids: count = field(default_factory=lambda: count(1), repr=False)
    _document_ids: count = field(default_factory=lambda: count(1), repr=False)
    _job_ids: count = field(default_factory=lambda: count(1), repr=False)

    def create_user(self, *, email: str, role: UserRole = UserRole.VIEWER, is_active: bool = True) -> UserRecord:
        with self._lock:
            user = UserRecord(id=next(self._user_ids), email=email, role=role, is_active=is_active)
            self.users[user.id] = user
            return replace(user)

    def get_user(self, user_id: int) -> UserRecord | None:
        with self._lock:
            user = self.users.get(user_id)
            return replace(user) if user is not None else None

    def create_document(self, *, owner_id: int, title: str, description: str | None = None) -> DocumentRecord:
        with self._lock:
            document = DocumentRecord(
                id=next(self._document_ids),
                title=title,
                owner_id=owner_id,
                created_at=datetime.now(UTC),
                description=description,
            )
            self.documents[document.id] = document
            return replace(document)

    def get_document(self, document_id: int) -> DocumentRecord | None:
        with self._lock:
            document = self.documents.get(document_id)
            return replace(document) if document is not None else None

    def insert_job(self, *, document_id: int, started_by_id: int) -> JobRecord:
        with self._lock:
            job = JobRecord(
                id=next(self._job_ids),
                document_id=document_id,
                started_by_id=started_by_id,
                status=JobStatus.PENDING,
                started_at=datetime.now(UTC),
            )
            self.jobs[job.id] = job
            self.job_write_count += 1
            return replace(job)

    def get_job(self, job_id: int) -> JobRecord | None:
        with self._lock:
            job = self.jobs.get(job_id)
            return replace(job) if job is not None else None

    def list_jobs(self) -> list[JobRecord]:
        return self._select_jobs(lambda job: True)

    def list_jobs_for_owner(self, owner_id: int) -> list[JobRecord]:
        return self._select_jobs(lambda job: job.started_by_id == owner_id)

    def list_jobs_for_document(self, document_id: int) -> list[JobRecord]:
        return self._select_jobs(lambda job: job.document_id == document_id)

    def conditional_update_job(
        self,
        job_id: int,
        *,
        expected: Callable[[JobRecord], bool],
        changes: dict[str, Any],
    ) -> JobUpdateResult:
        """Apply ``changes`` atomically only while ``expected`` holds for the stored job."""
        unknown = set(changes) - _MUTABLE_JOB_FIELDS
        if unknown:
            raise ValueError(f"Immutable or unknown job fields: {sorted(unknown)}")

        with self._lock:
            job = self.jobs.get(job_id)
            if job is None:
                return JobUpdateResult(outcome="not_found")
            if not expected(replace(job)):
                return JobUpdateResult(outcome="conflict", job=replace(job))

            for name, value in changes.items():
                setattr(job, name, value)
            self.job_write_count += 1
            return JobUpdateResult(outcome="applied", job=replace(job))

    def _select_jobs(self, predicate: Callable[[JobRecord], bool]) -> list[JobRecord]:
        with self._lock:
            selected = [replace(job) for job in self.jobs.values() if predicate(job)]
        # Ids break ties between jobs created within the same clock tick.
        selected.sort(key=lambda job: (job.started_at, job.id), reverse=True)
        return selected
