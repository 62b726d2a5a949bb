"""Declarative base for the job store.

Tables: ingestion_jobs, ingestion_logs and ingestion_tasks (see
tablerake.ingestion.db_models). Engines and sessions come from
core.connections.ConnectionManager.
"""

from sqlalchemy import MetaData
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase

# Stable constraint names, so the job store schema is the same on every run
metadata_obj = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


class Base(DeclarativeBase):
    metadata = metadata_obj


def init_database(engine: Engine) -> None:
    """Create any missing job store tables. Existing rows are left alone."""
    # Registers the models on Base.metadata
    from tablerake.ingestion import db_models  # noqa: F401

    with engine.begin() as conn:
        Base.metadata.create_all(conn)
