"""Preview command - show a page's first table, normalized and typed."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table as RichTable

from tablerake.cli.common import JsonFlag, VerboseOption, console, setup_logging, type_style
from tablerake.core.errors import ExtractionError


def preview(
    url: Annotated[str, typer.Argument(help="Page holding the table")],
    rows: Annotated[
        int,
        typer.Option("--rows", "-n", min=0, help="Number of data rows to show"),
    ] = 10,
    json_output: JsonFlag = False,
    verbose: VerboseOption = 0,
) -> None:
    """Fetch a page and preview its first table.

    Examples:

        tablerake preview https://example.com/stats

        tablerake preview https://example.com/stats --rows 25

        tablerake preview https://example.com/stats --json
    """
    setup_logging(verbosity=verbose)

    from tablerake.ingestion.preview import preview_url

    try:
        result = preview_url(url)
    except ExtractionError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if json_output:
        console.print_json(data=result.model_dump(mode="json"))
        return

    table = RichTable(show_header=True, header_style="bold")
    for column in result.columns:
        type_name = result.types[column].value
        table.add_column(f"{column}\n[{type_style(type_name)}]{type_name}[/]")

    for row in result.rows[:rows]:
        # Ragged rows are shown padded
        padded = (row + [""] * (len(result.columns) - len(row)))[: len(result.columns)]
        table.add_row(*(escape(cell) for cell in padded))

    console.print(table)
    console.print(
        f"{len(result.columns)} columns, {len(result.rows)} rows"
        + (f" (showing {min(rows, len(result.rows))})" if rows < len(result.rows) else "")
    )
