"""API routers."""

from tablerake.api.routers import ingest, jobs

__all__ = [
    "ingest",
    "jobs",
]
