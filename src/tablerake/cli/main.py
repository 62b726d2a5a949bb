"""Main CLI application entry point."""

from __future__ import annotations

import typer

from tablerake.cli.commands import ingest, preview, status, worker

app = typer.Typer(
    name="tablerake",
    help="tablerake - ingest the first table of a web page into DuckDB.",
    no_args_is_help=True,
)

# Register commands
app.command()(preview.preview)
app.command()(ingest.ingest)
app.command()(worker.worker)
app.command()(status.status)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
