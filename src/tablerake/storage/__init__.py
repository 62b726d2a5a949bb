"""Job store schema: declarative Base and table creation."""

from tablerake.storage.base import Base, init_database, metadata_obj

__all__ = [
    "Base",
    "init_database",
    "metadata_obj",
]
