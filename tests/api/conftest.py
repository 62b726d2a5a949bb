"""Pytest fixtures for API tests."""

from collections.abc import Generator, Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from tablerake.api.main import create_app
from tablerake.core.connections import close_default_manager, get_connection_manager
from tablerake.ingestion.worker import IngestionWorker


@pytest.fixture
def test_client(output_dir: Path) -> Generator[TestClient]:
    """FastAPI test client with isolated databases and no background workers.

    Tests drive the worker explicitly with the drain_queue fixture.
    """
    app = create_app(output_dir=output_dir, run_worker=False)

    with TestClient(app) as client:
        yield client

    # Cleanup
    close_default_manager()


@pytest.fixture
def fetch_page(cities_html: str) -> Iterator[MagicMock]:
    """Patch page fetching; returns the cities table by default."""
    with patch("tablerake.ingestion.preview.fetch_markup", return_value=cities_html) as fetch:
        yield fetch


@pytest.fixture
def drain_queue(test_client: TestClient):
    """Process every queued task with an in-test worker."""

    def drain() -> int:
        queue = test_client.app.state.queue
        worker = IngestionWorker(get_connection_manager(), queue)
        processed = 0
        while worker.run_once():
            processed += 1
        return processed

    return drain
