"""Record an ingestion job and enqueue its task."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from tablerake.core.connections import ConnectionManager
from tablerake.core.errors import DispatchFailure
from tablerake.core.logging import get_logger
from tablerake.core.models import IngestionTask, IngestRequest, JobStatus, Preview
from tablerake.ingestion.db_models import IngestionJob
from tablerake.ingestion.identifiers import validate_table_name
from tablerake.ingestion.queue import TaskQueue

logger = get_logger(__name__)


class JobDispatcher:
    """Turns an IngestRequest plus its Preview into a running job.

    The job row and the queued task are written in one transaction: either
    the caller gets a job id whose task is on the queue, or a
    DispatchFailure and nothing was persisted.
    """

    def __init__(self, manager: ConnectionManager, queue: TaskQueue):
        self._manager = manager
        self._queue = queue

    def dispatch(self, request: IngestRequest, preview: Preview) -> str:
        """Create the job and publish its task; does not wait for the worker.

        Args:
            request: Target table, mode and dedup flag
            preview: Columns, types and rows to ingest

        Returns:
            The new job id

        Raises:
            InvalidIdentifier: The target table name is not allowed
            DispatchFailure: The job could not be recorded or enqueued
        """
        table = validate_table_name(request.table)
        job_id = str(uuid4())

        task = IngestionTask(
            preview=preview,
            table=table,
            mode=request.mode,
            dedup=request.dedup,
            job_id=job_id,
        )

        try:
            with self._manager.session_scope() as session:
                session.add(
                    IngestionJob(
                        id=job_id,
                        table_name=table,
                        total_rows=len(preview.rows),
                        inserted_rows=0,
                        status=JobStatus.RUNNING.value,
                    )
                )
                session.flush()
                self._queue.publish(task, session)
        except (SQLAlchemyError, OSError, RuntimeError) as e:
            logger.error("dispatch_failed", table=table, error=str(e))
            raise DispatchFailure(f"Could not enqueue ingestion for table {table}: {e}") from e

        logger.info(
            "job_dispatched",
            job_id=job_id,
            table=table,
            mode=request.mode.value,
            dedup=request.dedup,
            rows=len(preview.rows),
        )
        return job_id
