"""Options and helpers shared by the tablerake commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from tablerake.core.config import get_settings
from tablerake.core.logging import configure_logging

if TYPE_CHECKING:
    from tablerake.core import ConnectionManager

# TABLERAKE_* settings may live in ./.env
load_dotenv()

console = Console()

OutputDirOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Directory with jobs.db and data.duckdb [default: TABLERAKE_OUTPUT_DIR]",
        file_okay=False,
        resolve_path=True,
    ),
]
JsonFlag = Annotated[bool, typer.Option("--json", help="Print JSON instead of tables")]
VerboseOption = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="-v for INFO logs, -vv for DEBUG"),
]

_VERBOSITY_LEVELS = ("WARNING", "INFO", "DEBUG")

_TYPE_STYLES = {
    "INTEGER": "cyan",
    "FLOAT": "cyan",
    "DATE": "magenta",
    "DATETIME": "magenta",
}


def setup_logging(verbosity: int = 0) -> None:
    """Quiet by default so command output stays readable."""
    log_format = get_settings().log_format
    configure_logging(
        log_level=_VERBOSITY_LEVELS[min(verbosity, 2)],
        log_format=log_format,
        show_timestamps=verbosity > 0,
        color=log_format == "console",
    )


def resolve_output_dir(output_dir: Path | None) -> Path:
    return output_dir if output_dir is not None else get_settings().output_dir


def get_manager(
    output_dir: Path | None, must_exist: bool = False, data_store: bool = True
) -> ConnectionManager:
    """Open the stores under output_dir. The caller closes the manager.

    With must_exist, exits with code 1 when there is no job store yet
    instead of creating an empty one. Commands that only touch jobs pass
    data_store=False and keep working while a worker holds data.duckdb.
    """
    from tablerake.core import ConnectionConfig, ConnectionManager

    config = ConnectionConfig.for_directory(resolve_output_dir(output_dir))
    if must_exist and not config.sqlite_path.exists():
        console.print(f"[red]No job store at {config.sqlite_path}[/red]")
        raise typer.Exit(1)

    manager = ConnectionManager(config)
    manager.initialize(data_store=data_store)
    return manager


def type_style(type_name: str) -> str:
    """Rich color for an inferred column type."""
    return _TYPE_STYLES.get(type_name, "white")
