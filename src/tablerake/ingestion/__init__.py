"""Ingestion: preview, dispatch, queue, worker and job status."""

from tablerake.ingestion.dispatcher import JobDispatcher
from tablerake.ingestion.preview import build_preview, preview_url
from tablerake.ingestion.queue import SqlTaskQueue, TaskQueue
from tablerake.ingestion.status import get_job_logs, get_job_status
from tablerake.ingestion.worker import IngestionWorker, WorkerGroup

__all__ = [
    "IngestionWorker",
    "JobDispatcher",
    "SqlTaskQueue",
    "TaskQueue",
    "WorkerGroup",
    "build_preview",
    "get_job_logs",
    "get_job_status",
    "preview_url",
]
