"""Tests for preview building."""

from unittest.mock import patch

import pytest

from tablerake.core.errors import FetchFailure, NoTableFound
from tablerake.core.models import ColumnType
from tablerake.ingestion.preview import build_preview, preview_url


class TestBuildPreview:
    """Tests for build_preview."""

    def test_columns_types_and_rows(self, cities_html: str):
        preview = build_preview(cities_html)

        assert preview.columns == ["city", "population", "area_km", "founded"]
        assert preview.types == {
            "city": ColumnType.TEXT,
            "population": ColumnType.INTEGER,
            "area_km": ColumnType.FLOAT,
            "founded": ColumnType.DATE,
        }
        # Rows stay raw; cleaning happens again at insert time
        assert preview.rows[0] == ["Oslo", "709,037", "454.0", "1040-01-01"]
        assert len(preview.rows) == 3

    def test_every_column_typed(self, cities_html: str):
        preview = build_preview(cities_html)
        assert set(preview.types) == set(preview.columns)

    def test_preview_is_frozen(self, cities_html: str):
        preview = build_preview(cities_html)
        with pytest.raises(Exception):
            preview.columns = []  # type: ignore[misc]

    def test_extraction_errors_propagate(self):
        with pytest.raises(NoTableFound):
            build_preview("<p>no table</p>")


class TestPreviewUrl:
    """Tests for preview_url."""

    def test_fetches_then_builds(self, cities_html: str):
        with patch(
            "tablerake.ingestion.preview.fetch_markup", return_value=cities_html
        ) as fetch:
            preview = preview_url("https://example.com/cities", timeout=3)

        fetch.assert_called_once_with("https://example.com/cities", timeout=3)
        assert preview.columns[0] == "city"

    def test_default_timeout_from_settings(self, cities_html: str):
        with patch(
            "tablerake.ingestion.preview.fetch_markup", return_value=cities_html
        ) as fetch:
            preview_url("https://example.com/cities")

        _, kwargs = fetch.call_args
        assert kwargs["timeout"] == 10.0

    def test_fetch_failure_propagates(self):
        with patch(
            "tablerake.ingestion.preview.fetch_markup",
            side_effect=FetchFailure("https://example.com", "HTTP 500"),
        ):
            with pytest.raises(FetchFailure):
                preview_url("https://example.com")
