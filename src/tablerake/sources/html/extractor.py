"""Extract a raw cell matrix from the first table of an HTML document."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from tablerake.core.errors import NoColumnsFound, NoDataRows, NoTableFound
from tablerake.core.logging import get_logger
from tablerake.core.models import RawTable

logger = get_logger(__name__)

# DataTables renders the label in this span next to sort icons and tooltips
COLUMN_TITLE_CLASS = "dt-column-title"


def cell_text(cell: Tag) -> str:
    """Visible text of a cell, preferring a nested column title element."""
    title = cell.find(class_=COLUMN_TITLE_CLASS)
    if isinstance(title, Tag):
        text = title.get_text().strip()
        if text:
            return text
    return cell.get_text().strip()


def extract_table(markup: str) -> RawTable:
    """Locate the first <table> and split it into a header and data rows.

    The first row holding at least one <th> is the header (its <th> cells).
    Every other row is data, whatever mix of <th>/<td> it uses. Rows without
    cells are presentational and dropped.

    Args:
        markup: HTML document

    Returns:
        RawTable with the header strings and the data rows

    Raises:
        NoTableFound: The document has no <table>
        NoColumnsFound: No header row, or the header has no cells
        NoDataRows: No data row survived filtering
    """
    soup = BeautifulSoup(markup, "html.parser")

    table = soup.find("table")
    if not isinstance(table, Tag):
        raise NoTableFound()

    headers: list[str] | None = None
    rows: list[list[str]] = []

    for tr in table.find_all("tr"):
        if headers is None:
            header_cells = tr.find_all("th", recursive=False)
            if header_cells:
                headers = [cell_text(th) for th in header_cells]
                continue

        cells = [cell_text(cell) for cell in tr.find_all(["td", "th"], recursive=False)]
        if cells:
            rows.append(cells)

    if not headers:
        raise NoColumnsFound()
    if not rows:
        raise NoDataRows()

    logger.info("table_extracted", columns=len(headers), rows=len(rows))
    return RawTable(headers=headers, rows=rows)
