"""Ingest command - queue a page's first table for ingestion."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape

from tablerake.cli.common import (
    OutputDirOption,
    VerboseOption,
    console,
    get_manager,
    setup_logging,
)
from tablerake.core.errors import DispatchFailure, ExtractionError, InvalidIdentifier
from tablerake.core.models import IngestMode, IngestRequest, JobStatus


def ingest(
    url: Annotated[str, typer.Argument(help="Page holding the table")],
    table: Annotated[str, typer.Option("--table", "-t", help="Destination table name")],
    mode: Annotated[
        IngestMode,
        typer.Option("--mode", "-m", help="create drops an existing table first"),
    ] = IngestMode.CREATE,
    dedup: Annotated[
        bool,
        typer.Option("--dedup", help="Request deduplication (inserts always skip duplicates)"),
    ] = False,
    wait: Annotated[
        bool,
        typer.Option("--wait", "-w", help="Process the queue here until the job finishes"),
    ] = False,
    output: OutputDirOption = None,
    verbose: VerboseOption = 0,
) -> None:
    """Queue ingestion of a page's first table.

    Without --wait the job is picked up by a running worker
    (tablerake worker, or the API server).

    Examples:

        tablerake ingest https://example.com/stats --table stats

        tablerake ingest https://example.com/stats -t stats --mode append --wait
    """
    setup_logging(verbosity=verbose)

    from tablerake.core.config import get_settings
    from tablerake.ingestion.dispatcher import JobDispatcher
    from tablerake.ingestion.identifiers import validate_table_name
    from tablerake.ingestion.preview import preview_url
    from tablerake.ingestion.queue import SqlTaskQueue, partition_for
    from tablerake.ingestion.status import get_job_status
    from tablerake.ingestion.worker import IngestionWorker

    settings = get_settings()

    try:
        validate_table_name(table)
        result = preview_url(url)
    except (InvalidIdentifier, ExtractionError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    # Only --wait writes rows; queuing alone needs the job store
    manager = get_manager(output, data_store=wait)
    try:
        queue = SqlTaskQueue(manager, partitions=settings.queue_partitions)
        request = IngestRequest(url=url, table=table, mode=mode, dedup=dedup)
        try:
            job_id = JobDispatcher(manager, queue).dispatch(request, result)
        except DispatchFailure as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1) from e

        console.print(f"Queued job [bold]{job_id}[/bold] ({len(result.rows)} rows -> {table})")
        if not wait:
            return

        worker = IngestionWorker(
            manager,
            queue,
            partition=partition_for(table, queue.partitions),
            progress_every=settings.progress_every,
            max_logged_failures=settings.max_logged_row_failures,
        )
        # Earlier tasks on the same partition are processed first
        with console.status("Ingesting..."):
            while worker.run_once():
                with manager.session_scope() as session:
                    if get_job_status(session, job_id).status != JobStatus.RUNNING.value:
                        break

        with manager.session_scope() as session:
            final = get_job_status(session, job_id)

        color = "green" if final.status == JobStatus.COMPLETED.value else "red"
        console.print(
            f"[{color}]{final.status}[/{color}]: {final.inserted}/{final.total} rows inserted"
        )
        if final.status == JobStatus.FAILED.value:
            raise typer.Exit(1)
    finally:
        manager.close()
