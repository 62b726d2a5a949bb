"""Ingestion database models.

SQLAlchemy models for the job store (jobs and their log lines) and for the
durable task queue that links the dispatcher to the worker.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tablerake.storage.base import Base


def _now() -> datetime:
    return datetime.now(UTC)


class IngestionJob(Base):
    """Progress and status of one ingestion task.

    Created by the dispatcher, mutated only by the worker, never deleted here.
    """

    __tablename__ = "ingestion_jobs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    table_name: Mapped[str] = mapped_column(String, nullable=False, index=True)

    total_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inserted_rows: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # running, completed, failed
    status: Mapped[str] = mapped_column(String, nullable=False, default="running")

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )

    logs: Mapped[list[IngestionLog]] = relationship(back_populates="job")


class IngestionLog(Base):
    """Append-only diagnostic line emitted while a job runs."""

    __tablename__ = "ingestion_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(
        ForeignKey("ingestion_jobs.id"), nullable=False, index=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)

    job: Mapped[IngestionJob] = relationship(back_populates="logs")


class QueuedTask(Base):
    """One message on the durable task queue.

    task_id is the queue offset: receive order within a partition is task_id
    order. A task stays pending until the worker acknowledges it.
    """

    __tablename__ = "ingestion_tasks"
    __table_args__ = (
        Index("ix_ingestion_tasks_poll", "topic", "partition_id", "status", "task_id"),
    )

    task_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    topic: Mapped[str] = mapped_column(String, nullable=False)
    partition_id: Mapped[int] = mapped_column(Integer, nullable=False)
    key: Mapped[str] = mapped_column(String, nullable=False)
    job_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Serialized IngestionTask (JSON text), validated by the consumer
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    # pending, done, dead
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    error: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime)
