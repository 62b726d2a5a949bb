"""Job status and log endpoints."""

from fastapi import APIRouter, HTTPException, Query

from tablerake.api.deps import SessionDep
from tablerake.api.schemas import JobStatusResponse, LogLineResponse
from tablerake.core.errors import JobNotFound
from tablerake.ingestion.status import DEFAULT_LOG_LIMIT, get_job_logs, get_job_status

router = APIRouter()


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
def job_status(job_id: str, session: SessionDep) -> JobStatusResponse:
    """Get progress for a job."""
    try:
        status = get_job_status(session, job_id)
    except JobNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return JobStatusResponse(total=status.total, inserted=status.inserted, status=status.status)


@router.get("/jobs/{job_id}/logs", response_model=list[LogLineResponse])
def job_logs(
    job_id: str,
    session: SessionDep,
    limit: int = Query(DEFAULT_LOG_LIMIT, ge=1, le=DEFAULT_LOG_LIMIT),
) -> list[LogLineResponse]:
    """Most recent log lines for a job, newest first."""
    try:
        lines = get_job_logs(session, job_id, limit=limit)
    except JobNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    return [LogLineResponse(time=line.time, msg=line.msg) for line in lines]
