"""Exception hierarchy for the ingestion pipeline.

Extraction and dispatch errors surface synchronously to the caller. Schema and
row errors are raised inside the worker and turned into job state there.
"""


class TablerakeError(Exception):
    """Base class for all tablerake errors."""


class ExtractionError(TablerakeError):
    """A page could not be turned into a preview."""


class FetchFailure(ExtractionError):
    """The source page could not be fetched (transport error, timeout, non-2xx)."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class NoTableFound(ExtractionError):
    """The document contains no <table> element."""

    def __init__(self) -> None:
        super().__init__("No table found in HTML")


class NoColumnsFound(ExtractionError):
    """The selected table has no header row, or the header has no cells."""

    def __init__(self) -> None:
        super().__init__("No columns found in table")


class NoDataRows(ExtractionError):
    """No data rows survived filtering."""

    def __init__(self) -> None:
        super().__init__("No data rows found in table")


class InvalidIdentifier(TablerakeError):
    """A table or column name is not a safe storage identifier."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(
            f"Invalid {kind} name {name!r}: use letters, digits and underscores, "
            "not starting with a digit, at most 63 characters"
        )


class DispatchFailure(TablerakeError):
    """The job could not be recorded and enqueued; nothing was persisted."""


class JobNotFound(TablerakeError):
    """No ingestion job exists with the given id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")


class SchemaApplyFailure(TablerakeError):
    """The destination table could not be dropped or created."""


class RowInsertFailure(TablerakeError):
    """A single row could not be coerced or inserted."""

    def __init__(self, row_index: int, reason: str):
        self.row_index = row_index
        self.reason = reason
        super().__init__(f"Row {row_index}: {reason}")
