"""tablerake: turn the first table of a web page into a typed DuckDB table."""

__version__ = "0.1.0"
