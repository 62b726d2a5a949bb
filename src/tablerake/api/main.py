"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tablerake import __version__
from tablerake.api import routers
from tablerake.core.config import get_settings
from tablerake.core.connections import close_default_manager, get_connection_manager
from tablerake.core.logging import get_logger
from tablerake.ingestion.queue import SqlTaskQueue
from tablerake.ingestion.worker import WorkerGroup

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores and the queue; run one worker per partition if enabled.

    Workers are stopped, and the in-flight task finished, before the stores
    are closed.
    """
    settings = get_settings()
    manager = get_connection_manager(output_dir=app.state.output_dir)
    queue = SqlTaskQueue(manager, partitions=settings.queue_partitions)
    app.state.queue = queue

    workers: WorkerGroup | None = None
    if app.state.run_worker:
        workers = WorkerGroup.for_partitions(
            manager,
            queue,
            partitions=settings.queue_partitions,
            poll_interval=settings.worker_poll_interval,
            progress_every=settings.progress_every,
            max_logged_failures=settings.max_logged_row_failures,
        )
        workers.start()
        logger.info("workers_started", partitions=settings.queue_partitions)

    yield

    # Cleanup
    if workers is not None:
        workers.stop()
    app.state.queue = None
    close_default_manager()


def create_app(
    output_dir: Path | None = None,
    run_worker: bool | None = None,
    title: str = "tablerake API",
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Build the tablerake API.

    Args:
        output_dir: Directory for jobs.db and data.duckdb (default from settings)
        run_worker: Start in-process workers (default from settings)
        title: OpenAPI title
        cors_origins: Allowed origins (default: any)
    """
    settings = get_settings()

    app = FastAPI(
        title=title,
        version=__version__,
        description="Ingest the first table of a web page into a typed DuckDB table",
        lifespan=lifespan,
    )

    # Read by the lifespan handler
    app.state.output_dir = output_dir if output_dir is not None else settings.output_dir
    app.state.run_worker = settings.run_worker if run_worker is None else run_worker
    app.state.queue = None

    if cors_origins is None:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(routers.ingest.router, prefix="/api/v1", tags=["ingest"])
    app.include_router(routers.jobs.router, prefix="/api/v1", tags=["jobs"])

    @app.get("/health")  # type: ignore[untyped-decorator]
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
