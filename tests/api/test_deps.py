"""Tests for route dependencies."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tablerake.api.deps import get_queue
from tablerake.core.config import get_settings
from tablerake.ingestion.queue import SqlTaskQueue


class TestGetQueue:
    def test_startup_queue_is_used(self, test_client: TestClient):
        request = MagicMock()
        request.app = test_client.app

        assert get_queue(request) is test_client.app.state.queue

    def test_fallback_uses_configured_partitions(
        self, test_client: TestClient, monkeypatch: pytest.MonkeyPatch
    ):
        """Tasks must land on the partitions the workers were started for."""
        monkeypatch.setenv("TABLERAKE_QUEUE_PARTITIONS", "3")
        get_settings.cache_clear()
        request = MagicMock()
        request.app.state.queue = None
        try:
            queue = get_queue(request)
        finally:
            get_settings.cache_clear()

        assert isinstance(queue, SqlTaskQueue)
        assert queue.partitions == 3
