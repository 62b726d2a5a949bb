"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from tablerake.core.connections import ConnectionConfig, ConnectionManager
from tablerake.core.logging import configure_logging
from tablerake.core.models import ColumnType, Preview
from tablerake.ingestion.queue import SqlTaskQueue

CITIES_HTML = """
<html>
  <body>
    <h1>Cities</h1>
    <table class="wikitable">
      <thead>
        <tr><th>City</th><th>Population</th><th>Area (km²)</th><th>Founded</th></tr>
      </thead>
      <tbody>
        <tr><td>Oslo</td><td>709,037</td><td>454.0</td><td>1040-01-01</td></tr>
        <tr><td>Bergen</td><td>289,330[3]</td><td>465.3</td><td>1070-01-01</td></tr>
        <tr><td>Trondheim</td><td>N/A</td><td>342.3</td><td>0997-01-01</td></tr>
      </tbody>
    </table>
    <table><tr><th>Ignored</th></tr><tr><td>second table</td></tr></table>
  </body>
</html>
"""


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Rebind structlog to the current stderr after each test.

    CLI commands reconfigure logging while CliRunner has swapped in a
    temporary stderr that is closed afterwards.
    """
    yield
    configure_logging()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Temporary directory for jobs.db and data.duckdb."""
    path = tmp_path / "tablerake_output"
    path.mkdir()
    return path


@pytest.fixture
def manager(output_dir: Path) -> Generator[ConnectionManager]:
    """Initialized ConnectionManager over file-backed temp databases."""
    m = ConnectionManager(ConnectionConfig.for_directory(output_dir))
    m.initialize()
    yield m
    m.close()


@pytest.fixture
def queue(manager: ConnectionManager) -> SqlTaskQueue:
    return SqlTaskQueue(manager)


@pytest.fixture
def cities_html() -> str:
    return CITIES_HTML


@pytest.fixture
def scores_preview() -> Preview:
    """Small typed preview, independent of extraction."""
    return Preview(
        columns=["player", "score", "ratio", "played_on"],
        types={
            "player": ColumnType.TEXT,
            "score": ColumnType.INTEGER,
            "ratio": ColumnType.FLOAT,
            "played_on": ColumnType.DATE,
        },
        rows=[
            ["Alice", "1,200", "0.75", "2024-01-15"],
            ["Bob", "980", "0.5", "2024-01-16"],
            ["Carol", "1,050", "0.66", "2024-01-17"],
        ],
    )
