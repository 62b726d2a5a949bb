"""Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, Field

from tablerake.core.models import ColumnType, IngestMode

# --- Preview schemas ---


class PreviewRequest(BaseModel):
    """Schema for previewing a page's first table."""

    url: str = Field(description="Page holding the table")


class PreviewResponse(BaseModel):
    """Normalized columns, inferred types and the raw rows."""

    columns: list[str]
    types: dict[str, ColumnType]
    rows: list[list[str]]


# --- Ingestion schemas ---


class IngestRequestBody(BaseModel):
    """Schema for starting an ingestion job."""

    url: str
    table: str = Field(description="Destination table name")
    mode: IngestMode = Field(default=IngestMode.CREATE, description="create or append")
    dedup: bool = False


class IngestResponse(BaseModel):
    """Returned as soon as the job is queued."""

    job_id: str


# --- Job schemas ---


class JobStatusResponse(BaseModel):
    """Progress snapshot for a job."""

    total: int
    inserted: int
    status: str


class LogLineResponse(BaseModel):
    """One job log line."""

    time: datetime
    msg: str
