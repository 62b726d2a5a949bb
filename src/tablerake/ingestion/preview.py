"""Compose extraction, normalization and inference into a Preview."""

from __future__ import annotations

from tablerake.analysis.typing import infer_types, normalize_columns
from tablerake.core.config import get_settings
from tablerake.core.logging import get_logger
from tablerake.core.models import Preview
from tablerake.sources.html import extract_table, fetch_markup

logger = get_logger(__name__)


def build_preview(markup: str) -> Preview:
    """Build a Preview from an HTML document.

    Raises:
        NoTableFound, NoColumnsFound, NoDataRows: From extraction
    """
    raw = extract_table(markup)
    columns = normalize_columns(raw.headers)
    types = infer_types(columns, raw.rows)

    logger.info(
        "preview_built",
        columns=columns,
        types={c: t.value for c, t in types.items()},
        rows=len(raw.rows),
    )
    return Preview(columns=columns, types=types, rows=raw.rows)


def preview_url(url: str, timeout: float | None = None) -> Preview:
    """Fetch a page and build its Preview.

    Args:
        url: Page holding the table
        timeout: Fetch deadline in seconds (defaults to settings)

    Raises:
        FetchFailure: The page could not be fetched
        NoTableFound, NoColumnsFound, NoDataRows: From extraction
    """
    if timeout is None:
        timeout = get_settings().fetch_timeout_seconds

    return build_preview(fetch_markup(url, timeout=timeout))
