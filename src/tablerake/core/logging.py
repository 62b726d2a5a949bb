"""structlog setup shared by the API, the CLI and the workers.

Events are snake_case names with keyword fields:

    logger = get_logger(__name__)
    logger.info("job_dispatched", job_id=job_id, table="gdp")

Inside a worker, log_context() binds the job and table to every event
emitted by any module until the block exits:

    with log_context(job_id=job_id, table="gdp"):
        logger.info("rows_inserted", count=50)

Console rendering is the default; set TABLERAKE_LOG_FORMAT=json for
line-delimited JSON.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    show_timestamps: bool = True,
    color: bool = True,
) -> None:
    """(Re)configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: "console" or "json"
        show_timestamps: Prefix console lines with an ISO timestamp
        color: Colored console output
    """
    level = _level(log_level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]
    if show_timestamps or log_format == "json":
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if log_format == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=color, exception_formatter=structlog.dev.plain_traceback
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    # uvicorn, sqlalchemy and urllib3 log through the stdlib
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    return cast(FilteringBoundLogger, structlog.get_logger(name))


@contextmanager
def log_context(**context: Any) -> Iterator[None]:
    """Bind fields to every event logged in this thread until exit."""
    with structlog.contextvars.bound_contextvars(**context):
        yield


configure_logging()
