"""Tests for DuckDB destination tables."""

from datetime import date

import pytest

from tablerake.core.connections import ConnectionManager
from tablerake.core.errors import SchemaApplyFailure
from tablerake.core.models import ColumnType, IngestMode, Preview
from tablerake.ingestion.sink import DuckDBSink, create_table_sql, existing_row_sql, insert_sql


class TestStatements:
    def test_create_table_sql(self, scores_preview: Preview):
        sql = create_table_sql("scores", scores_preview)

        assert sql.startswith('CREATE TABLE IF NOT EXISTS "scores" (')
        assert '"player" VARCHAR' in sql
        assert '"score" BIGINT' in sql
        assert '"ratio" DOUBLE' in sql
        assert '"played_on" DATE' in sql
        assert 'UNIQUE ("player", "score", "ratio", "played_on")' in sql

    def test_datetime_maps_to_timestamp(self):
        preview = Preview(columns=["at"], types={"at": ColumnType.DATETIME}, rows=[])
        assert '"at" TIMESTAMP' in create_table_sql("events", preview)

    def test_insert_sql(self):
        sql = insert_sql("scores", ["player", "score"])
        assert sql == 'INSERT OR IGNORE INTO "scores" ("player", "score") VALUES (?, ?)'

    def test_existing_row_sql(self):
        sql = existing_row_sql("scores", ["player", "score"])
        assert sql == (
            'SELECT 1 FROM "scores" WHERE "player" IS NOT DISTINCT FROM ?'
            ' AND "score" IS NOT DISTINCT FROM ? LIMIT 1'
        )


class TestDuckDBSink:
    """Tests for DuckDBSink against a real DuckDB file."""

    def test_apply_schema_create(self, manager: ConnectionManager, scores_preview: Preview):
        sink = DuckDBSink(manager)

        steps = sink.apply_schema("scores", scores_preview, IngestMode.CREATE)

        assert any("Created table schema (4 columns)" in s for s in steps)
        assert sink.row_count("scores") == 0

    def test_create_mode_drops_existing(
        self, manager: ConnectionManager, scores_preview: Preview
    ):
        sink = DuckDBSink(manager)
        columns = scores_preview.columns
        sink.apply_schema("scores", scores_preview, IngestMode.CREATE)
        sink.insert_row("scores", columns, ["Alice", 1, 0.5, date(2024, 1, 1)])

        sink.apply_schema("scores", scores_preview, IngestMode.CREATE)

        assert sink.row_count("scores") == 0

    def test_append_mode_keeps_rows(self, manager: ConnectionManager, scores_preview: Preview):
        sink = DuckDBSink(manager)
        columns = scores_preview.columns
        sink.apply_schema("scores", scores_preview, IngestMode.CREATE)
        sink.insert_row("scores", columns, ["Alice", 1, 0.5, date(2024, 1, 1)])

        steps = sink.apply_schema("scores", scores_preview, IngestMode.APPEND)

        assert not any("Dropped" in s for s in steps)
        assert sink.row_count("scores") == 1

    def test_duplicate_insert_is_ignored(
        self, manager: ConnectionManager, scores_preview: Preview
    ):
        sink = DuckDBSink(manager)
        columns = scores_preview.columns
        row = ["Alice", 1, 0.5, date(2024, 1, 1)]
        sink.apply_schema("scores", scores_preview, IngestMode.CREATE)

        assert sink.insert_row("scores", columns, row) is True
        assert sink.insert_row("scores", columns, row) is False
        assert sink.row_count("scores") == 1

    def test_duplicate_with_empty_cells_is_ignored(
        self, manager: ConnectionManager, scores_preview: Preview
    ):
        """Rows equal up to NULLs count as duplicates, unlike under UNIQUE alone."""
        sink = DuckDBSink(manager)
        columns = scores_preview.columns
        row = ["Alice", None, None, date(2024, 1, 1)]
        sink.apply_schema("scores", scores_preview, IngestMode.CREATE)

        assert sink.insert_row("scores", columns, row) is True
        assert sink.insert_row("scores", columns, row) is False
        assert sink.insert_row("scores", columns, ["Alice", 1, None, date(2024, 1, 1)]) is True
        assert sink.row_count("scores") == 2

    def test_invalid_column_fails_schema(self, manager: ConnectionManager):
        preview = Preview(columns=["Bad Name"], types={"Bad Name": ColumnType.TEXT}, rows=[])

        with pytest.raises(SchemaApplyFailure):
            DuckDBSink(manager).apply_schema("things", preview, IngestMode.CREATE)

    def test_append_with_incompatible_schema_fails_on_insert(
        self, manager: ConnectionManager, scores_preview: Preview
    ):
        """An existing table keeps its own schema in append mode."""
        import duckdb

        sink = DuckDBSink(manager)
        other = Preview(columns=["name"], types={"name": ColumnType.TEXT}, rows=[])
        sink.apply_schema("scores", other, IngestMode.CREATE)
        sink.apply_schema("scores", scores_preview, IngestMode.APPEND)

        with pytest.raises(duckdb.Error):
            sink.insert_row(
                "scores", scores_preview.columns, ["Alice", 1, 0.5, date(2024, 1, 1)]
            )
