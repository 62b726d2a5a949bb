"""Tests for the durable partitioned task queue."""

import pytest
from sqlalchemy import select

from tablerake.core.connections import ConnectionManager
from tablerake.core.models import IngestionTask, IngestMode, Preview
from tablerake.ingestion.db_models import QueuedTask
from tablerake.ingestion.queue import SqlTaskQueue, partition_for


def _task(preview: Preview, table: str, job_id: str) -> IngestionTask:
    return IngestionTask(
        preview=preview, table=table, mode=IngestMode.CREATE, dedup=False, job_id=job_id
    )


def _publish(manager: ConnectionManager, queue: SqlTaskQueue, task: IngestionTask) -> None:
    with manager.session_scope() as session:
        queue.publish(task, session)


class TestPartitionFor:
    def test_stable(self):
        assert partition_for("gdp", 8) == partition_for("gdp", 8)

    def test_in_range(self):
        for key in ["a", "gdp", "population", "x" * 50]:
            assert 0 <= partition_for(key, 3) < 3

    def test_single_partition(self):
        assert partition_for("anything", 1) == 0


class TestSqlTaskQueue:
    """Tests for publish/receive/ack semantics."""

    def test_rejects_zero_partitions(self, manager: ConnectionManager):
        with pytest.raises(ValueError):
            SqlTaskQueue(manager, partitions=0)

    def test_empty_partition(self, queue: SqlTaskQueue):
        assert queue.receive(0) is None
        assert queue.pending_count() == 0

    def test_publish_then_receive(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        _publish(manager, queue, _task(scores_preview, "scores", "job-1"))

        delivery = queue.receive(0)

        assert delivery is not None
        assert delivery.key == "scores"
        assert delivery.job_id == "job-1"
        assert IngestionTask.model_validate_json(delivery.payload).preview == scores_preview

    def test_fifo_within_partition(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        for job_id in ["job-1", "job-2", "job-3"]:
            _publish(manager, queue, _task(scores_preview, "scores", job_id))

        received = []
        while (delivery := queue.receive(0)) is not None:
            received.append(delivery.job_id)
            queue.ack(delivery)

        assert received == ["job-1", "job-2", "job-3"]

    def test_unacked_task_is_redelivered(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        _publish(manager, queue, _task(scores_preview, "scores", "job-1"))

        first = queue.receive(0)
        second = queue.receive(0)

        assert first is not None and second is not None
        assert first.task_id == second.task_id

    def test_ack_removes_from_pending(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        _publish(manager, queue, _task(scores_preview, "scores", "job-1"))
        delivery = queue.receive(0)
        assert delivery is not None

        queue.ack(delivery)

        assert queue.receive(0) is None
        with manager.session_scope() as session:
            row = session.execute(select(QueuedTask)).scalar_one()
            assert row.status == "done"
            assert row.processed_at is not None

    def test_dead_letter_keeps_reason(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        _publish(manager, queue, _task(scores_preview, "scores", "job-1"))
        delivery = queue.receive(0)
        assert delivery is not None

        queue.dead_letter(delivery, "malformed task")

        assert queue.pending_count() == 0
        with manager.session_scope() as session:
            row = session.execute(select(QueuedTask)).scalar_one()
            assert row.status == "dead"
            assert row.error == "malformed task"

    def test_tasks_keyed_by_table(self, manager: ConnectionManager, scores_preview: Preview):
        queue = SqlTaskQueue(manager, partitions=4)
        tables = ["alpha", "beta", "gamma", "delta", "epsilon"]
        for i, table in enumerate(tables):
            _publish(manager, queue, _task(scores_preview, table, f"job-{i}"))

        for table in tables:
            assert queue.pending_count(partition_for(table, 4)) >= 1

        total = sum(queue.pending_count(p) for p in range(4))
        assert total == len(tables)

    def test_publish_rolls_back_with_session(
        self, manager: ConnectionManager, queue: SqlTaskQueue, scores_preview: Preview
    ):
        with pytest.raises(RuntimeError):
            with manager.session_scope() as session:
                queue.publish(_task(scores_preview, "scores", "job-1"), session)
                raise RuntimeError("caller failed after publishing")

        assert queue.pending_count() == 0
