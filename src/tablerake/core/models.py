"""Domain models shared by the preview path and the ingestion worker.

Preview and IngestionTask cross the queue boundary as JSON, so they are
pydantic models and validate on the way back in.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ColumnType(str, Enum):
    """Storage type inferred for a column."""

    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TEXT = "TEXT"

    @property
    def sql_type(self) -> str:
        """DuckDB column type used when materializing the table."""
        return _SQL_TYPES[self]


_SQL_TYPES = {
    ColumnType.INTEGER: "BIGINT",
    ColumnType.FLOAT: "DOUBLE",
    ColumnType.DATE: "DATE",
    ColumnType.DATETIME: "TIMESTAMP",
    ColumnType.TEXT: "VARCHAR",
}


class IngestMode(str, Enum):
    """How the destination table is prepared."""

    CREATE = "create"  # drop any existing table first
    APPEND = "append"


class JobStatus(str, Enum):
    """Lifecycle of an ingestion job."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RawTable(BaseModel):
    """Header strings plus a (possibly ragged) matrix of cell strings."""

    headers: list[str]
    rows: list[list[str]]


class Preview(BaseModel):
    """Normalized columns, inferred types and the raw rows.

    Immutable once built; this is what the worker receives.
    """

    model_config = ConfigDict(frozen=True)

    columns: list[str]
    types: dict[str, ColumnType]
    rows: list[list[str]]

    @model_validator(mode="after")
    def _every_column_typed(self) -> Preview:
        missing = [c for c in self.columns if c not in self.types]
        if missing:
            raise ValueError(f"columns without a type: {missing}")
        return self


class IngestRequest(BaseModel):
    """A user's request to ingest the first table of a page."""

    url: str
    table: str
    mode: IngestMode = IngestMode.CREATE
    dedup: bool = Field(
        default=False,
        description="Accepted and carried to the worker; inserts are always duplicate-tolerant",
    )


class IngestionTask(BaseModel):
    """Queue payload: everything the worker needs to persist one preview."""

    preview: Preview
    table: str
    mode: IngestMode
    dedup: bool
    job_id: str
