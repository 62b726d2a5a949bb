"""Column name normalization.

Turns raw header strings into unique identifiers that are safe to use as
column names in the destination table.
"""

from __future__ import annotations

import re

_SPACE_RUNS = re.compile(r" +")
_INVALID_CHARS = re.compile(r"[^a-z0-9_]+")

NORMALIZED_COLUMN = re.compile(r"^[a-z0-9_]+$")


def normalize_name(header: str, position: int) -> str:
    """Normalize a single header without collision handling.

    Args:
        header: Raw header text
        position: 0-based position of the header, used for the fallback name

    Returns:
        Non-empty name made of [a-z0-9_]
    """
    name = header.lower()
    name = _SPACE_RUNS.sub("_", name)
    name = _INVALID_CHARS.sub("", name)
    name = name.strip("_")
    return name or f"col_{position}"


def normalize_columns(headers: list[str]) -> list[str]:
    """Normalize headers into unique storage-safe column names.

    The first occurrence of a name keeps it; the Nth later occurrence gets
    "_N" appended. Resolution follows header order.

    Example:
        >>> normalize_columns(["Employee #", "Start Date", "Column", "Column"])
        ['employee', 'start_date', 'column', 'column_2']

    Args:
        headers: Raw header strings in table order

    Returns:
        One name per header, same order, unique
    """
    seen: dict[str, int] = {}
    taken: set[str] = set()
    result: list[str] = []

    for position, header in enumerate(headers):
        base = normalize_name(header, position)

        count = seen.get(base, 0) + 1
        seen[base] = count
        name = base if count == 1 else f"{base}_{count}"

        # A literal header such as "column_2" can already own the suffixed name
        while name in taken:
            count += 1
            seen[base] = count
            name = f"{base}_{count}"

        taken.add(name)
        result.append(name)

    return result
