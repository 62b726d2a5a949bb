"""DuckDB destination tables built from a Preview.

Every table gets a UNIQUE constraint across all of its columns and rows go in
with INSERT OR IGNORE. NULLs never conflict under UNIQUE, so each insert is
preceded by an IS NOT DISTINCT FROM lookup that also treats two empty cells
as equal.
"""

from __future__ import annotations

from collections.abc import Sequence

import duckdb

from tablerake.analysis.typing.inference import CellValue
from tablerake.core.connections import ConnectionManager
from tablerake.core.errors import InvalidIdentifier, SchemaApplyFailure
from tablerake.core.logging import get_logger
from tablerake.core.models import IngestMode, Preview
from tablerake.ingestion.identifiers import quote, validate_column_name, validate_table_name

logger = get_logger(__name__)


def create_table_sql(table: str, preview: Preview) -> str:
    """CREATE TABLE IF NOT EXISTS statement for the preview's schema."""
    validate_table_name(table)
    column_defs = []
    for column in preview.columns:
        validate_column_name(column)
        column_defs.append(f"{quote(column)} {preview.types[column].sql_type}")
    column_defs.append(f"UNIQUE ({', '.join(quote(c) for c in preview.columns)})")
    return f"CREATE TABLE IF NOT EXISTS {quote(table)} ({', '.join(column_defs)})"


def insert_sql(table: str, columns: Sequence[str]) -> str:
    """Duplicate-tolerant parameterized INSERT for the given columns."""
    column_list = ", ".join(quote(c) for c in columns)
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT OR IGNORE INTO {quote(table)} ({column_list}) VALUES ({placeholders})"


def existing_row_sql(table: str, columns: Sequence[str]) -> str:
    """Lookup matching a stored row equal to the parameters, NULL included."""
    conditions = " AND ".join(f"{quote(c)} IS NOT DISTINCT FROM ?" for c in columns)
    return f"SELECT 1 FROM {quote(table)} WHERE {conditions} LIMIT 1"


class DuckDBSink:
    """Writes destination tables through the manager's serialized DuckDB connection."""

    def __init__(self, manager: ConnectionManager):
        self._manager = manager

    def apply_schema(self, table: str, preview: Preview, mode: IngestMode) -> list[str]:
        """Prepare the destination table.

        In create mode an existing table of the same name is dropped first.

        Returns:
            Human-readable steps taken, for the job log

        Raises:
            SchemaApplyFailure: The table could not be dropped or created
        """
        steps: list[str] = []
        try:
            ddl = create_table_sql(table, preview)
            with self._manager.duckdb_write() as conn:
                if mode is IngestMode.CREATE:
                    conn.execute(f"DROP TABLE IF EXISTS {quote(table)}")
                    steps.append(f"Dropped existing table '{table}'")
                conn.execute(ddl)
        except (duckdb.Error, InvalidIdentifier) as e:
            raise SchemaApplyFailure(f"Failed to create table '{table}': {e}") from e

        steps.append(f"Created table schema ({len(preview.columns)} columns)")
        logger.info(
            "table_schema_applied", table=table, mode=mode.value, columns=len(preview.columns)
        )
        return steps

    def insert_row(
        self, table: str, columns: Sequence[str], values: Sequence[CellValue]
    ) -> bool:
        """Insert one row unless an identical row exists.

        Returns:
            True if the row changed the table, False if it was a duplicate

        Raises:
            duckdb.Error: The store rejected the row
        """
        params = list(values)
        # Lookup and insert share the write lock, so no equal row lands in between
        with self._manager.duckdb_write() as conn:
            if conn.execute(existing_row_sql(table, columns), params).fetchone() is not None:
                return False
            conn.execute(insert_sql(table, columns), params)
        return True

    def row_count(self, table: str) -> int:
        """Rows currently stored in a destination table."""
        validate_table_name(table)
        with self._manager.duckdb_cursor() as cursor:
            result = cursor.execute(f"SELECT COUNT(*) FROM {quote(table)}").fetchone()
        return result[0] if result else 0
