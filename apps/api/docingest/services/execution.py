"""Background execution of ingestion jobs.

Scheduling a job moves it to PROCESSING on the caller's thread. A per-job delay
thread then waits out the simulated processing time and hands the short
finalizing step to the driver's thread pool, so the pool size never holds back
when a job starts or when it reaches a terminal state. Every write is a guarded
``conditional_update_job`` call, so a cancellation that lands first wins and
the driver's finalization becomes a no-op.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from datetime import UTC, datetime
from functools import partial
import logging
import random
from threading import Lock, Thread
import time

from docingest.domain.job_lifecycle import can_transition, is_terminal
from docingest.repositories.memory import InMemoryStore, JobRecord
from docingest.schemas.job import JobStatus

logger = logging.getLogger(__name__)

SIMULATED_PROCESSING_SECONDS = 5.0
_SUCCESS_RATE = 0.8
_FAILURE_OUTPUT = "Failed to process document. Error: Could not parse file format."


def _success_output(title: str) -> str:
    return f"Successfully processed {title}. Extracted content and metadata."


def _error_output(exc: Exception) -> str:
    return f"Error processing job: {exc}"


def _not_terminal(job: JobRecord) -> bool:
    return not is_terminal(job.status)


def _can_start(job: JobRecord) -> bool:
    return can_transition(job.status, JobStatus.PROCESSING)


def _status_value(job: JobRecord | None) -> str | None:
    return job.status.value if job is not None else None


def _propagate(target: Future[None], source: Future[None]) -> None:
    if source.cancelled():
        target.cancel()
        return
    exc = source.exception()
    if exc is not None:
        target.set_exception(exc)
    else:
        target.set_result(None)


class JobExecutionDriver:
    """Fire-and-forget runner for the simulated ingestion work."""

    def __init__(
        self,
        store: InMemoryStore,
        *,
        max_workers: int = 4,
        processing_delay: float = SIMULATED_PROCESSING_SECONDS,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ingestion-driver")
        self._processing_delay = processing_delay
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._futures: dict[int, Future[None]] = {}
        self._futures_lock = Lock()

    def schedule(self, job_id: int) -> Future[None]:
        """Start the job now and return a future for its finalization.

        The returned future resolves once the terminal write was attempted, or
        immediately when the job could not be started.
        """
        unit: Future[None] = Future()
        with self._futures_lock:
            self._futures[job_id] = unit
        unit.add_done_callback(self._on_done(job_id))
        logger.info("driver.scheduled job_id=%s", job_id)

        try:
            started = self._start(job_id)
        except Exception as exc:
            unit.set_exception(exc)
            return unit
        if not started:
            unit.set_result(None)
            return unit

        Thread(
            target=self._finish_after_delay,
            args=(job_id, unit),
            name=f"ingestion-delay-{job_id}",
            daemon=True,
        ).start()
        return unit

    def wait_for(self, job_id: int, timeout: float | None = None) -> None:
        """Block until the job's background unit finishes; no-op if none is tracked."""
        with self._futures_lock:
            future = self._futures.get(job_id)
        if future is not None:
            future.result(timeout=timeout)

    def shutdown(self, *, wait: bool = True) -> None:
        if wait:
            with self._futures_lock:
                pending = list(self._futures.values())
            wait_futures(pending)
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def run(self, job_id: int) -> None:
        """Run the whole unit inline: start, wait out the delay, finalize."""
        if not self._start(job_id):
            return
        self._sleep(self._processing_delay)
        self._complete(job_id)

    def _start(self, job_id: int) -> bool:
        started = self._store.conditional_update_job(
            job_id,
            expected=_can_start,
            changes={"status": JobStatus.PROCESSING},
        )
        if not started.applied:
            logger.info(
                "driver.start_skipped job_id=%s outcome=%s current_status=%s",
                job_id,
                started.outcome,
                _status_value(started.job),
            )
            return False

        logger.info("driver.processing job_id=%s", job_id)
        return True

    def _finish_after_delay(self, job_id: int, unit: Future[None]) -> None:
        try:
            self._sleep(self._processing_delay)
        except Exception as exc:
            unit.set_exception(exc)
            return

        try:
            finalizing = self._executor.submit(self._complete, job_id)
        except RuntimeError:
            # Executor was shut down while the delay was running.
            unit.cancel()
            return
        finalizing.add_done_callback(partial(_propagate, unit))

    def _complete(self, job_id: int) -> None:
        try:
            status, output = self._process(job_id)
        except Exception as exc:
            logger.warning("driver.failed job_id=%s reason=%s", job_id, type(exc).__name__)
            status, output = JobStatus.FAILED, _error_output(exc)

        try:
            self._finalize(job_id, status=status, output=output)
        except Exception as exc:
            logger.warning(
                "driver.finalize_failed job_id=%s status=%s reason=%s",
                job_id,
                status.value,
                type(exc).__name__,
            )
            self._finalize(job_id, status=JobStatus.FAILED, output=_error_output(exc))

    def _process(self, job_id: int) -> tuple[JobStatus, str]:
        job = self._store.get_job(job_id)
        if job is None:
            raise LookupError(f"Ingestion job with ID {job_id} not found")
        document = self._store.get_document(job.document_id)
        if document is None:
            raise LookupError(f"Document with ID {job.document_id} not found")

        if self._rng.random() < _SUCCESS_RATE:
            return JobStatus.COMPLETED, _success_output(document.title)
        return JobStatus.FAILED, _FAILURE_OUTPUT

    def _finalize(self, job_id: int, *, status: JobStatus, output: str) -> None:
        result = self._store.conditional_update_job(
            job_id,
            expected=_not_terminal,
            changes={
                "status": status,
                "completed_at": datetime.now(UTC),
                "output": output,
            },
        )
        if result.applied:
            logger.info("driver.finalized job_id=%s status=%s", job_id, status.value)
            return

        # Someone else (usually a cancel) already claimed the terminal state.
        logger.info(
            "driver.finalize_skipped job_id=%s outcome=%s current_status=%s",
            job_id,
            result.outcome,
            _status_value(result.job),
        )

    def _on_done(self, job_id: int) -> Callable[[Future[None]], None]:
        def _callback(future: Future[None]) -> None:
            with self._futures_lock:
                if self._futures.get(job_id) is future:
                    del self._futures[job_id]
            if future.cancelled():
                logger.warning("driver.abandoned job_id=%s", job_id)
                return
            exc = future.exception()
            if exc is not None:
                logger.error("driver.unhandled job_id=%s", job_id, exc_info=exc)

        return _callback
