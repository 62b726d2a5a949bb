"""CLI for tablerake.

Provides commands for previewing pages, queueing ingestion jobs, running the
worker and checking job status.

Usage:
    tablerake preview https://example.com/stats
    tablerake ingest https://example.com/stats --table stats --wait
    tablerake worker
    tablerake status <job_id> --logs

Environment:
    Loads .env file from current directory if present.
    TABLERAKE_* variables override settings.
"""

from tablerake.cli.main import app, main

__all__ = ["app", "main"]
