"""Preview and ingestion endpoints."""

from fastapi import APIRouter, HTTPException

from tablerake.api.deps import ManagerDep, QueueDep
from tablerake.api.schemas import (
    IngestRequestBody,
    IngestResponse,
    PreviewRequest,
    PreviewResponse,
)
from tablerake.core.errors import (
    DispatchFailure,
    ExtractionError,
    FetchFailure,
    InvalidIdentifier,
)
from tablerake.core.models import IngestRequest, Preview
from tablerake.ingestion.dispatcher import JobDispatcher
from tablerake.ingestion.identifiers import validate_table_name
from tablerake.ingestion.preview import preview_url

router = APIRouter()


def _load_preview(url: str) -> Preview:
    try:
        return preview_url(url)
    except FetchFailure as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ExtractionError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/preview", response_model=PreviewResponse)
def preview(request: PreviewRequest) -> PreviewResponse:
    """Fetch a page and return its first table, normalized and typed."""
    result = _load_preview(request.url)
    return PreviewResponse(columns=result.columns, types=result.types, rows=result.rows)


@router.post("/ingest", response_model=IngestResponse)
def ingest(
    request: IngestRequestBody,
    manager: ManagerDep,
    queue: QueueDep,
) -> IngestResponse:
    """Queue the page's first table for ingestion.

    Returns the job_id immediately. Use GET /jobs/{job_id} for progress.
    """
    # Reject a bad table name before fetching anything
    try:
        validate_table_name(request.table)
    except InvalidIdentifier as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    result = _load_preview(request.url)

    dispatcher = JobDispatcher(manager, queue)
    try:
        job_id = dispatcher.dispatch(
            IngestRequest(
                url=request.url,
                table=request.table,
                mode=request.mode,
                dedup=request.dedup,
            ),
            result,
        )
    except DispatchFailure as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return IngestResponse(job_id=job_id)
