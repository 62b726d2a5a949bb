"""CLI command implementations."""

from tablerake.cli.commands import ingest, preview, status, worker

__all__ = [
    "ingest",
    "preview",
    "status",
    "worker",
]
