"""HTTP API for previews, ingestion and job status."""

from tablerake.api.main import create_app

__all__ = ["create_app"]
