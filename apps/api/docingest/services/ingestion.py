"""Ingestion job service layer."""

from datetime import UTC, datetime
import logging

from docingest.core.logging import safe_log_identifier
from docingest.domain.access import can_access, can_access_document, is_admin
from docingest.domain.job_lifecycle import CANCELLABLE_STATES, CANCELLED_OUTPUT, ensure_cancellable, is_terminal
from docingest.errors import ConflictError, InvalidStateError, NotFoundError, UnauthorizedError
from docingest.repositories.memory import InMemoryStore, JobRecord
from docingest.schemas.auth import AuthPrincipal
from docingest.schemas.job import IngestionJob, JobStatus, UpdateIngestionJobRequest
from docingest.services.execution import JobExecutionDriver

logger = logging.getLogger(__name__)


def _is_cancellable(job: JobRecord) -> bool:
    return job.status in CANCELLABLE_STATES


def _always(_: JobRecord) -> bool:
    return True


class IngestionJobService:
    def __init__(self, store: InMemoryStore, driver: JobExecutionDriver) -> None:
        self._store = store
        self._driver = driver

    def create_job(self, *, document_id: int, actor_id: int) -> IngestionJob:
        document = self._store.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document with ID {document_id} not found")

        user = self._store.get_user(actor_id)
        if user is None or not user.is_active:
            raise UnauthorizedError("User not found")

        actor = AuthPrincipal(user_id=user.id, role=user.role)
        if not can_access_document(actor, document):
            logger.warning(
                "create.rejected document_id=%s principal_id=%s reason=not_document_owner",
                document_id,
                safe_log_identifier(actor_id, prefix="pid"),
            )
            raise UnauthorizedError("You do not have permission to create an ingestion job for this document")

        record = self._store.insert_job(document_id=document_id, started_by_id=actor.user_id)
        job = self._to_job(record)
        self._driver.schedule(record.id)
        logger.info(
            "create.applied job_id=%s document_id=%s principal_id=%s",
            record.id,
            document_id,
            safe_log_identifier(actor_id, prefix="pid"),
        )
        return job

    def get_job(self, *, job_id: int, actor: AuthPrincipal) -> IngestionJob:
        return self._to_job(self._get_accessible_record(job_id=job_id, actor=actor))

    def list_jobs(self, *, actor: AuthPrincipal) -> list[IngestionJob]:
        if is_admin(actor):
            records = self._store.list_jobs()
        else:
            records = self._store.list_jobs_for_owner(actor.user_id)
        return [self._to_job(record) for record in records]

    def list_jobs_for_document(self, *, document_id: int, actor: AuthPrincipal) -> list[IngestionJob]:
        document = self._store.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document with ID {document_id} not found")

        # The document owner sees every job on the document, including jobs started by others.
        if not can_access_document(actor, document):
            raise UnauthorizedError("You do not have permission to view ingestion jobs for this document")

        return [self._to_job(record) for record in self._store.list_jobs_for_document(document_id)]

    def update_job(self, *, job_id: int, patch: UpdateIngestionJobRequest, actor: AuthPrincipal) -> IngestionJob:
        if not is_admin(actor):
            raise UnauthorizedError("Only administrators can update ingestion jobs")

        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        new_status = changes.get("status")
        if new_status is not None:
            # Keep completed_at consistent with whatever status the admin forces.
            changes["completed_at"] = datetime.now(UTC) if is_terminal(new_status) else None

        result = self._store.conditional_update_job(job_id, expected=_always, changes=changes)
        if result.outcome == "not_found":
            raise NotFoundError(f"Ingestion job with ID {job_id} not found")

        logger.info(
            "update.applied job_id=%s principal_id=%s fields=%s",
            job_id,
            safe_log_identifier(actor.user_id, prefix="pid"),
            ",".join(sorted(changes)),
        )
        return self._to_job(result.job)

    def cancel_job(self, *, job_id: int, actor: AuthPrincipal) -> IngestionJob:
        record = self._get_accessible_record(job_id=job_id, actor=actor)
        try:
            ensure_cancellable(record.status)
        except InvalidStateError:
            logger.warning(
                "cancel.rejected job_id=%s code=INVALID_STATE current_status=%s",
                job_id,
                record.status.value,
            )
            raise

        result = self._store.conditional_update_job(
            job_id,
            expected=_is_cancellable,
            changes={
                "status": JobStatus.FAILED,
                "completed_at": datetime.now(UTC),
                "output": CANCELLED_OUTPUT,
            },
        )
        if result.outcome == "not_found":
            raise NotFoundError(f"Ingestion job with ID {job_id} not found")
        if result.outcome == "conflict":
            logger.warning(
                "cancel.conflict job_id=%s current_status=%s",
                job_id,
                result.job.status.value,
            )
            raise ConflictError(
                "Ingestion job was finalized concurrently",
                details={"current_status": result.job.status},
            )

        logger.info(
            "cancel.applied job_id=%s prev_status=%s new_status=%s principal_id=%s",
            job_id,
            record.status.value,
            result.job.status.value,
            safe_log_identifier(actor.user_id, prefix="pid"),
        )
        return self._to_job(result.job)

    def _get_accessible_record(self, *, job_id: int, actor: AuthPrincipal) -> JobRecord:
        record = self._store.get_job(job_id)
        if record is None:
            raise NotFoundError(f"Ingestion job with ID {job_id} not found")
        if not can_access(actor, record):
            raise UnauthorizedError("You do not have permission to access this ingestion job")
        return record

    @staticmethod
    def _to_job(record: JobRecord) -> IngestionJob:
        return IngestionJob(
            id=record.id,
            document_id=record.document_id,
            started_by_id=record.started_by_id,
            status=record.status,
            started_at=record.started_at,
            completed_at=record.completed_at,
            output=record.output,
        )
