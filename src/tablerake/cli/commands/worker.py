"""Worker command - drain the task queue into DuckDB."""

from __future__ import annotations

import time
from typing import Annotated

import typer

from tablerake.cli.common import (
    OutputDirOption,
    VerboseOption,
    console,
    get_manager,
    resolve_output_dir,
    setup_logging,
)


def worker(
    output: OutputDirOption = None,
    partitions: Annotated[
        int | None,
        typer.Option("--partitions", "-p", min=1, help="Queue partitions (default: settings)"),
    ] = None,
    verbose: VerboseOption = 1,
) -> None:
    """Run one ingestion worker per queue partition until interrupted.

    Do not run this next to an API server that starts its own workers:
    DuckDB allows a single writing process.
    """
    setup_logging(verbosity=verbose)

    from tablerake.core.config import get_settings
    from tablerake.ingestion.queue import SqlTaskQueue
    from tablerake.ingestion.worker import WorkerGroup

    settings = get_settings()
    partitions = partitions or settings.queue_partitions

    manager = get_manager(output)
    queue = SqlTaskQueue(manager, partitions=partitions)
    group = WorkerGroup.for_partitions(
        manager,
        queue,
        partitions=partitions,
        poll_interval=settings.worker_poll_interval,
        progress_every=settings.progress_every,
        max_logged_failures=settings.max_logged_row_failures,
    )

    console.print(
        f"Worker running on {partitions} partition(s) in {resolve_output_dir(output)}; "
        "Ctrl-C to stop"
    )
    group.start()
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        console.print("\nStopping...")
    finally:
        group.stop()
        manager.close()
