"""Durable, partitioned task queue between the dispatcher and the worker.

Tasks are keyed by target table; the key picks the partition, so every task
for one table is consumed in submission order by the single worker bound to
that partition. Delivery is at-least-once: a task stays pending until the
worker acknowledges it, and a worker that dies mid-task sees it again on
restart.

SqlTaskQueue keeps the queue in the job store. Publishing joins the caller's
session, so recording a job and enqueueing its task commit (or roll back)
together.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tablerake.core.connections import ConnectionManager
from tablerake.core.models import IngestionTask
from tablerake.ingestion.db_models import QueuedTask

TOPIC = "table_rows"


@dataclass(frozen=True)
class Delivery:
    """A received message; hand it back to ack() or dead_letter()."""

    task_id: int
    partition: int
    key: str
    job_id: str
    payload: str


class TaskQueue(Protocol):
    """Delivery contract the dispatcher and worker rely on."""

    def publish(self, task: IngestionTask, session: Session) -> None: ...

    def receive(self, partition: int) -> Delivery | None: ...

    def ack(self, delivery: Delivery) -> None: ...

    def dead_letter(self, delivery: Delivery, reason: str) -> None: ...


def partition_for(key: str, partitions: int) -> int:
    """Stable partition for a key (crc32, so it survives restarts)."""
    return zlib.crc32(key.encode("utf-8")) % partitions


class SqlTaskQueue:
    """TaskQueue stored in the ingestion_tasks table."""

    def __init__(
        self,
        manager: ConnectionManager,
        partitions: int = 1,
        topic: str = TOPIC,
    ):
        if partitions < 1:
            raise ValueError("partitions must be >= 1")
        self._manager = manager
        self.partitions = partitions
        self.topic = topic

    def publish(self, task: IngestionTask, session: Session) -> None:
        """Add the task to the caller's session; it is visible once that commits."""
        session.add(
            QueuedTask(
                topic=self.topic,
                partition_id=partition_for(task.table, self.partitions),
                key=task.table,
                job_id=task.job_id,
                payload=task.model_dump_json(),
                status="pending",
            )
        )

    def receive(self, partition: int) -> Delivery | None:
        """Oldest pending task in the partition, or None when it is drained."""
        with self._manager.session_scope() as session:
            stmt = (
                select(QueuedTask)
                .where(
                    QueuedTask.topic == self.topic,
                    QueuedTask.partition_id == partition,
                    QueuedTask.status == "pending",
                )
                .order_by(QueuedTask.task_id.asc())
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            if row is None:
                return None
            return Delivery(
                task_id=row.task_id,
                partition=row.partition_id,
                key=row.key,
                job_id=row.job_id,
                payload=row.payload,
            )

    def ack(self, delivery: Delivery) -> None:
        """Mark a task processed; it will not be delivered again."""
        self._settle(delivery, status="done", error=None)

    def dead_letter(self, delivery: Delivery, reason: str) -> None:
        """Park a task that cannot be processed; it needs operator attention."""
        self._settle(delivery, status="dead", error=reason)

    def pending_count(self, partition: int | None = None) -> int:
        """Number of tasks waiting, optionally for one partition."""
        with self._manager.session_scope() as session:
            stmt = select(func.count()).select_from(QueuedTask).where(
                QueuedTask.topic == self.topic,
                QueuedTask.status == "pending",
            )
            if partition is not None:
                stmt = stmt.where(QueuedTask.partition_id == partition)
            return session.execute(stmt).scalar() or 0

    def _settle(self, delivery: Delivery, status: str, error: str | None) -> None:
        with self._manager.session_scope() as session:
            session.execute(
                update(QueuedTask)
                .where(QueuedTask.task_id == delivery.task_id)
                .values(status=status, error=error, processed_at=datetime.now(UTC))
            )
