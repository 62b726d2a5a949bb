"""Read-side queries over the job store.

Used by the API, the CLI and tests to check how a job is doing without
touching the worker.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from tablerake.core.errors import JobNotFound
from tablerake.ingestion.db_models import IngestionJob, IngestionLog

DEFAULT_LOG_LIMIT = 50


@dataclass
class JobStatusView:
    """Progress snapshot for one job."""

    job_id: str
    table: str
    total: int
    inserted: int
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def progress_percent(self) -> float:
        if self.total == 0:
            return 100.0
        return min(100.0, 100.0 * self.inserted / self.total)


@dataclass
class LogLine:
    """One job log entry."""

    time: datetime
    msg: str


def get_job_status(session: Session, job_id: str) -> JobStatusView:
    """Current progress of a job.

    Raises:
        JobNotFound: No job with that id
    """
    job = session.get(IngestionJob, job_id)
    if job is None:
        raise JobNotFound(job_id)

    return JobStatusView(
        job_id=job.id,
        table=job.table_name,
        total=job.total_rows,
        inserted=job.inserted_rows,
        status=job.status,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


def get_job_logs(session: Session, job_id: str, limit: int = DEFAULT_LOG_LIMIT) -> list[LogLine]:
    """Most recent log lines of a job, newest first.

    Raises:
        JobNotFound: No job with that id
    """
    if session.get(IngestionJob, job_id) is None:
        raise JobNotFound(job_id)

    stmt = (
        select(IngestionLog)
        .where(IngestionLog.job_id == job_id)
        .order_by(IngestionLog.created_at.desc(), IngestionLog.id.desc())
        .limit(limit)
    )
    return [LogLine(time=entry.created_at, msg=entry.message) for entry in session.scalars(stmt)]


def list_jobs(session: Session, table: str | None = None, limit: int = 20) -> list[JobStatusView]:
    """Recent jobs, newest first, optionally for one table."""
    stmt = select(IngestionJob).order_by(IngestionJob.created_at.desc()).limit(limit)
    if table is not None:
        stmt = stmt.where(IngestionJob.table_name == table)

    return [
        JobStatusView(
            job_id=job.id,
            table=job.table_name,
            total=job.total_rows,
            inserted=job.inserted_rows,
            status=job.status,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )
        for job in session.scalars(stmt)
    ]
