"""Route dependencies: a job store session, the manager and the task queue."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from tablerake.core.config import get_settings
from tablerake.core.connections import ConnectionManager, get_connection_manager
from tablerake.ingestion.queue import SqlTaskQueue, TaskQueue


def get_session() -> Generator[Session]:
    """Session committed after the handler returns, rolled back if it raises."""
    with get_connection_manager().session_scope() as session:
        yield session


def get_manager() -> ConnectionManager:
    return get_connection_manager()


def get_queue(request: Request) -> TaskQueue:
    """Queue created at startup, or one built from settings if there is none."""
    queue = getattr(request.app.state, "queue", None)
    if queue is None:
        queue = SqlTaskQueue(
            get_connection_manager(), partitions=get_settings().queue_partitions
        )
    return queue


SessionDep = Annotated[Session, Depends(get_session)]
ManagerDep = Annotated[ConnectionManager, Depends(get_manager)]
QueueDep = Annotated[TaskQueue, Depends(get_queue)]
