"""Tests for job dispatch."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from tablerake.core.connections import ConnectionManager
from tablerake.core.errors import DispatchFailure, InvalidIdentifier
from tablerake.core.models import IngestionTask, IngestMode, IngestRequest, Preview
from tablerake.ingestion.db_models import IngestionJob
from tablerake.ingestion.dispatcher import JobDispatcher
from tablerake.ingestion.queue import SqlTaskQueue
from tablerake.ingestion.status import get_job_status


def _request(table: str = "scores", **kwargs) -> IngestRequest:
    return IngestRequest(url="https://example.com/scores", table=table, **kwargs)


class FailingQueue:
    """Queue whose publish always fails."""

    def publish(self, task: IngestionTask, session: Session) -> None:
        raise OperationalError("INSERT INTO ingestion_tasks", {}, Exception("disk I/O error"))

    def receive(self, partition: int):
        return None

    def ack(self, delivery) -> None:
        pass

    def dead_letter(self, delivery, reason: str) -> None:
        pass


class TestJobDispatcher:
    """Tests for JobDispatcher.dispatch."""

    def test_job_recorded_as_running(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        job_id = JobDispatcher(manager, queue).dispatch(_request(), scores_preview)

        with manager.session_scope() as session:
            status = get_job_status(session, job_id)

        assert status.status == "running"
        assert status.total == 3
        assert status.inserted == 0
        assert status.table == "scores"

    def test_task_enqueued(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        job_id = JobDispatcher(manager, queue).dispatch(
            _request(mode=IngestMode.APPEND, dedup=True), scores_preview
        )

        delivery = queue.receive(0)
        assert delivery is not None
        task = IngestionTask.model_validate_json(delivery.payload)
        assert task.job_id == job_id
        assert task.table == "scores"
        assert task.mode is IngestMode.APPEND
        assert task.dedup is True
        assert task.preview == scores_preview

    def test_job_ids_unique(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        dispatcher = JobDispatcher(manager, queue)
        ids = {dispatcher.dispatch(_request(), scores_preview) for _ in range(5)}
        assert len(ids) == 5

    def test_returns_before_processing(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        """Nothing is written to the data store at dispatch time."""
        JobDispatcher(manager, queue).dispatch(_request(), scores_preview)

        with manager.duckdb_cursor() as cursor:
            tables = cursor.execute(
                "SELECT table_name FROM information_schema.tables WHERE table_name = 'scores'"
            ).fetchall()
        assert tables == []

    def test_queue_failure_leaves_no_job(self, manager: ConnectionManager, scores_preview: Preview):
        dispatcher = JobDispatcher(manager, FailingQueue())

        with pytest.raises(DispatchFailure):
            dispatcher.dispatch(_request(), scores_preview)

        with manager.session_scope() as session:
            count = session.execute(select(func.count()).select_from(IngestionJob)).scalar()
        assert count == 0

    def test_invalid_table_name(self, manager: ConnectionManager, scores_preview: Preview):
        queue = MagicMock()
        with pytest.raises(InvalidIdentifier):
            JobDispatcher(manager, queue).dispatch(_request(table="bad name"), scores_preview)

        queue.publish.assert_not_called()
