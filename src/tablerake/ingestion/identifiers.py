"""Allow-listing and quoting of identifiers used in DuckDB statements.

Table names come from users and column names travel through the queue, so
both are validated before they are ever placed in a statement, and always
double-quoted when they are.
"""

from __future__ import annotations

import re

from tablerake.analysis.typing.normalize import NORMALIZED_COLUMN
from tablerake.core.errors import InvalidIdentifier

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def validate_table_name(name: str) -> str:
    """Return name unchanged if it is a safe table identifier.

    Raises:
        InvalidIdentifier: For anything but letters, digits and underscores
            (not starting with a digit, at most 63 characters)
    """
    if not _TABLE_NAME.match(name):
        raise InvalidIdentifier("table", name)
    return name


def validate_column_name(name: str) -> str:
    """Return name unchanged if it looks like normalize_columns output."""
    if not NORMALIZED_COLUMN.match(name):
        raise InvalidIdentifier("column", name)
    return name


def quote(identifier: str) -> str:
    """Double-quote a validated identifier."""
    return '"' + identifier.replace('"', '""') + '"'
