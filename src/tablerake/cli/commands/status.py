"""Status command - show job progress and logs."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table as RichTable

from tablerake.cli.common import JsonFlag, OutputDirOption, console, get_manager
from tablerake.core.errors import JobNotFound


def status(
    job_id: Annotated[str, typer.Argument(help="Job id returned by ingest")],
    logs: Annotated[bool, typer.Option("--logs", "-l", help="Also show job log lines")] = False,
    output: OutputDirOption = None,
    json_output: JsonFlag = False,
) -> None:
    """Show progress of an ingestion job.

    Examples:

        tablerake status 3f1c...

        tablerake status 3f1c... --logs

        tablerake status 3f1c... --json
    """
    from tablerake.ingestion.status import get_job_logs, get_job_status

    manager = get_manager(output, must_exist=True, data_store=False)
    try:
        with manager.session_scope() as session:
            try:
                view = get_job_status(session, job_id)
                lines = get_job_logs(session, job_id) if logs else []
            except JobNotFound as e:
                console.print(f"[red]{escape(str(e))}[/red]")
                raise typer.Exit(1) from e
    finally:
        manager.close()

    if json_output:
        data: dict[str, object] = {
            "total": view.total,
            "inserted": view.inserted,
            "status": view.status,
        }
        if logs:
            data["logs"] = [{"time": line.time.isoformat(), "msg": line.msg} for line in lines]
        console.print_json(data=data)
        return

    color = {"completed": "green", "failed": "red"}.get(view.status, "yellow")
    console.print(f"\n[bold]Job[/bold] {view.job_id} -> {view.table}")
    console.print(f"Status: [{color}]{view.status}[/{color}]")
    console.print(f"Rows: {view.inserted:,}/{view.total:,} ({view.progress_percent:.0f}%)")

    if logs:
        table = RichTable(show_header=True, header_style="bold")
        table.add_column("Time")
        table.add_column("Message")
        for line in lines:
            table.add_row(line.time.strftime("%Y-%m-%d %H:%M:%S"), escape(line.msg))
        console.print(table)
