"""HTML page source: fetch a page and extract its first table."""

from tablerake.sources.html.extractor import extract_table
from tablerake.sources.html.fetch import fetch_markup

__all__ = ["extract_table", "fetch_markup"]
