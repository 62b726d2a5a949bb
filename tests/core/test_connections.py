"""Tests for the connection manager."""

from pathlib import Path

import pytest
from sqlalchemy import text

from tablerake.core.connections import ConnectionConfig, ConnectionManager


class TestConnectionManager:
    def test_both_stores_by_default(self, output_dir: Path):
        manager = ConnectionManager(ConnectionConfig.for_directory(output_dir))
        manager.initialize()
        try:
            with manager.duckdb_cursor() as cursor:
                assert cursor.execute("SELECT 1").fetchone() == (1,)
        finally:
            manager.close()

        assert (output_dir / "data.duckdb").exists()

    def test_job_store_only(self, output_dir: Path):
        manager = ConnectionManager(ConnectionConfig.for_directory(output_dir))
        manager.initialize(data_store=False)
        try:
            with manager.session_scope() as session:
                assert session.execute(text("SELECT COUNT(*) FROM ingestion_jobs")).scalar() == 0

            with pytest.raises(RuntimeError, match="Data store not opened"):
                with manager.duckdb_cursor():
                    pass
            with pytest.raises(RuntimeError, match="Data store not opened"):
                with manager.duckdb_write():
                    pass
        finally:
            manager.close()

        assert (output_dir / "jobs.db").exists()
        assert not (output_dir / "data.duckdb").exists()

    def test_requires_initialize(self, output_dir: Path):
        manager = ConnectionManager(ConnectionConfig.for_directory(output_dir))

        with pytest.raises(RuntimeError, match="not initialized"):
            with manager.session_scope():
                pass
