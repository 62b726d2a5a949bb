"""Ingestion worker: drains one queue partition into DuckDB.

Each task moves through received -> schema_applied -> inserting ->
completed | failed. A schema failure fails the job before any row is tried.
Row failures are isolated: counted, the first few written to the job log,
and the task carries on. Once every row has been attempted the job is marked
completed, whatever the failure count.

The dedup flag is carried on the task but does not change behavior: inserts
are always INSERT OR IGNORE, so rows already present are skipped silently.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

import duckdb
from pydantic import ValidationError
from sqlalchemy import case, select, update

from tablerake.analysis.typing import clean_cell, coerce_cell
from tablerake.analysis.typing.inference import CellValue
from tablerake.core.connections import ConnectionManager
from tablerake.core.errors import RowInsertFailure, SchemaApplyFailure
from tablerake.core.logging import get_logger, log_context
from tablerake.core.models import IngestionTask, IngestMode, JobStatus, Preview
from tablerake.ingestion.db_models import IngestionJob, IngestionLog
from tablerake.ingestion.queue import TaskQueue
from tablerake.ingestion.sink import DuckDBSink

logger = get_logger(__name__)

PROGRESS_EVERY = 50
MAX_LOGGED_ROW_FAILURES = 5


@dataclass
class IngestionOutcome:
    """What one task did to its job and table."""

    job_id: str
    status: JobStatus
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
    error: str | None = None


class JobRecorder:
    """Writes a job's progress, terminal status and log lines."""

    def __init__(self, manager: ConnectionManager, job_id: str):
        self._manager = manager
        self.job_id = job_id

    def log(self, message: str) -> None:
        """Append a line to the job's log (and to the process log)."""
        logger.info("job_log", message=message)
        with self._manager.session_scope() as session:
            session.add(IngestionLog(job_id=self.job_id, message=message))

    def progress(self, inserted: int) -> None:
        """Record inserted_rows; never moves the counter backwards."""
        with self._manager.session_scope() as session:
            session.execute(
                update(IngestionJob)
                .where(IngestionJob.id == self.job_id, IngestionJob.inserted_rows <= inserted)
                .values(inserted_rows=inserted)
            )

    def finish(self, status: JobStatus, inserted: int | None = None) -> None:
        """Set the terminal status, plus the final count when given."""
        values: dict[str, object] = {"status": status.value}
        if inserted is not None:
            values["inserted_rows"] = case(
                (IngestionJob.inserted_rows > inserted, IngestionJob.inserted_rows),
                else_=inserted,
            )
        with self._manager.session_scope() as session:
            session.execute(
                update(IngestionJob).where(IngestionJob.id == self.job_id).values(**values)
            )


class IngestionWorker:
    """Single sequential consumer bound to one queue partition.

    Scale out by running more workers on other partitions; one partition is
    never shared, so tasks for a table are applied in submission order.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        queue: TaskQueue,
        partition: int = 0,
        progress_every: int = PROGRESS_EVERY,
        max_logged_failures: int = MAX_LOGGED_ROW_FAILURES,
        sink: DuckDBSink | None = None,
    ):
        self._manager = manager
        self._queue = queue
        self.partition = partition
        self.progress_every = progress_every
        self.max_logged_failures = max_logged_failures
        self._sink = sink or DuckDBSink(manager)

    def run(self, stop: threading.Event, poll_interval: float = 0.5) -> None:
        """Receive loop; returns once stop is set."""
        logger.info("worker_started", partition=self.partition)
        while not stop.is_set():
            try:
                processed = self.run_once()
            except Exception:
                # Store hiccup between tasks; the task is still pending and comes back
                logger.exception("worker_iteration_failed", partition=self.partition)
                processed = False
            if not processed:
                stop.wait(poll_interval)
        logger.info("worker_stopped", partition=self.partition)

    def run_once(self) -> bool:
        """Receive, process and acknowledge at most one task.

        Returns:
            True if a task was taken off the queue
        """
        delivery = self._queue.receive(self.partition)
        if delivery is None:
            return False

        try:
            task = IngestionTask.model_validate_json(delivery.payload)
        except ValidationError as e:
            logger.error("task_malformed", task_id=delivery.task_id, error=str(e))
            self._queue.dead_letter(delivery, f"malformed task: {e}")
            return True

        state = self._job_state(task.job_id)
        if state is None:
            logger.error("task_job_missing", task_id=delivery.task_id, job_id=task.job_id)
            self._queue.dead_letter(delivery, f"job {task.job_id} not found")
            return True

        status, inserted_so_far = state
        if status != JobStatus.RUNNING.value:
            # Redelivery of a task that already reached a terminal state
            logger.info("task_already_settled", job_id=task.job_id, status=status)
            self._queue.ack(delivery)
            return True

        start_at = inserted_so_far if task.mode is IngestMode.APPEND else 0
        try:
            self.process(task, start_at=start_at)
        except Exception as e:
            # No task-level retry: settle the job and park the task
            logger.exception("task_processing_failed", job_id=task.job_id)
            recorder = JobRecorder(self._manager, task.job_id)
            recorder.log(f"Ingestion failed: {e}")
            recorder.finish(JobStatus.FAILED)
            self._queue.dead_letter(delivery, f"processing failed: {e}")
            return True

        self._queue.ack(delivery)
        return True

    def process(self, task: IngestionTask, start_at: int = 0) -> IngestionOutcome:
        """Apply the schema and insert every row of one task.

        Args:
            task: The ingestion task
            start_at: Inserted count already recorded for this job (redelivery)

        Returns:
            IngestionOutcome with per-row counts
        """
        preview = task.preview
        recorder = JobRecorder(self._manager, task.job_id)

        with log_context(job_id=task.job_id, table=task.table):
            recorder.log(
                f"Starting ingestion for table '{task.table}' "
                f"(mode: {task.mode.value}, dedup: {task.dedup}, rows: {len(preview.rows)})"
            )

            try:
                for step in self._sink.apply_schema(task.table, preview, task.mode):
                    recorder.log(step)
            except SchemaApplyFailure as e:
                recorder.log(str(e))
                recorder.finish(JobStatus.FAILED)
                logger.error("job_failed", error=str(e))
                return IngestionOutcome(task.job_id, JobStatus.FAILED, error=str(e))

            outcome = IngestionOutcome(task.job_id, JobStatus.COMPLETED, inserted=start_at)
            for index, row in enumerate(preview.rows):
                try:
                    changed = self._insert(task.table, preview, index, row)
                except RowInsertFailure as e:
                    outcome.failed += 1
                    if outcome.failed <= self.max_logged_failures:
                        recorder.log(f"Row insert error: {e}")
                    continue

                if not changed:
                    outcome.duplicates += 1
                    continue

                outcome.inserted += 1
                if outcome.inserted % self.progress_every == 0:
                    recorder.progress(outcome.inserted)
                    recorder.log(
                        f"Progress: {outcome.inserted}/{len(preview.rows)} rows inserted"
                    )

            recorder.log(
                f"Ingestion complete: {outcome.inserted} inserted, "
                f"{outcome.duplicates} duplicates skipped, {outcome.failed} failed"
            )
            recorder.finish(JobStatus.COMPLETED, outcome.inserted)
            logger.info(
                "job_completed",
                inserted=outcome.inserted,
                duplicates=outcome.duplicates,
                failed=outcome.failed,
            )
            return outcome

    def _insert(self, table: str, preview: Preview, index: int, row: Sequence[str]) -> bool:
        """Clean, coerce and insert one row.

        Short rows are padded with NULLs; rows longer than the column list
        are rejected.

        Raises:
            RowInsertFailure: The row could not be coerced or was rejected
        """
        columns = preview.columns
        if len(row) > len(columns):
            raise RowInsertFailure(
                index, f"row has {len(row)} cells but the table has {len(columns)} columns"
            )

        try:
            values: list[CellValue] = [
                coerce_cell(clean_cell(cell), preview.types[column])
                for column, cell in zip(columns, row, strict=False)
            ]
        except (ValueError, ArithmeticError) as e:
            raise RowInsertFailure(index, str(e)) from e
        values.extend([None] * (len(columns) - len(values)))

        try:
            return self._sink.insert_row(table, columns, values)
        except duckdb.Error as e:
            raise RowInsertFailure(index, str(e)) from e

    def _job_state(self, job_id: str) -> tuple[str, int] | None:
        with self._manager.session_scope() as session:
            row = session.execute(
                select(IngestionJob.status, IngestionJob.inserted_rows).where(
                    IngestionJob.id == job_id
                )
            ).first()
            if row is None:
                return None
            return row.status, row.inserted_rows


class WorkerGroup:
    """Runs one worker per partition on a background thread pool."""

    def __init__(self, workers: list[IngestionWorker], poll_interval: float = 0.5):
        self.workers = workers
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future[None]] = []

    @classmethod
    def for_partitions(
        cls,
        manager: ConnectionManager,
        queue: TaskQueue,
        partitions: int,
        poll_interval: float = 0.5,
        progress_every: int = PROGRESS_EVERY,
        max_logged_failures: int = MAX_LOGGED_ROW_FAILURES,
    ) -> WorkerGroup:
        """One worker per partition, sharing the manager and queue."""
        workers = [
            IngestionWorker(
                manager,
                queue,
                partition=p,
                progress_every=progress_every,
                max_logged_failures=max_logged_failures,
            )
            for p in range(partitions)
        ]
        return cls(workers, poll_interval=poll_interval)

    def start(self) -> None:
        if self._executor is not None:
            return
        self._stop.clear()
        self._executor = ThreadPoolExecutor(
            max_workers=len(self.workers), thread_name_prefix="ingest-worker"
        )
        self._futures = [
            self._executor.submit(worker.run, self._stop, self.poll_interval)
            for worker in self.workers
        ]

    def stop(self) -> None:
        """Signal every worker and wait for the task in flight to finish."""
        if self._executor is None:
            return
        self._stop.set()
        self._executor.shutdown(wait=True)
        for future in self._futures:
            # Surface anything that escaped a worker loop
            future.result()
        self._executor = None
        self._futures = []
