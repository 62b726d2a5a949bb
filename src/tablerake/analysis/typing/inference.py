"""Majority-vote type inference over cleaned cell values.

Each non-empty cleaned value is run through four independent detectors
(integer, float, date, datetime). A column gets the first type, in the order
INTEGER, FLOAT, DATETIME, DATE, whose detector accepted at least 80% of its
non-empty values; otherwise TEXT. An all-integer column is therefore INTEGER
even though every integer also parses as a float, and a few footnotes or
"N/A" cells do not push an otherwise numeric column to TEXT.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime

from tablerake.analysis.typing.cleaning import NullValueConfig, clean_cell
from tablerake.core.models import ColumnType

THRESHOLD = 0.8

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%m/%d/%Y",
    "%d %b %Y",
    "%b %d, %Y",
)

DATETIME_FORMATS: tuple[str, ...] = (
    # RFC 3339
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d %b %Y %H:%M",
)

_INTEGER = re.compile(r"^[+-]?\d+$")


def is_integer(value: str) -> bool:
    """Optional sign followed by digits only."""
    return _INTEGER.match(value) is not None


def is_float(value: str) -> bool:
    """Anything Python's float() accepts, minus digit-group underscores."""
    if "_" in value:
        return False
    try:
        float(value)
    except ValueError:
        return False
    return True


def parse_with_formats(value: str, formats: tuple[str, ...]) -> datetime | None:
    """Parse value with the first format that accepts it, or return None."""
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def is_date(value: str) -> bool:
    return parse_with_formats(value, DATE_FORMATS) is not None


def is_datetime(value: str) -> bool:
    return parse_with_formats(value, DATETIME_FORMATS) is not None


@dataclass
class ColumnTypeCounts:
    """Detector hits for one column."""

    total: int = 0
    integers: int = 0
    floats: int = 0
    dates: int = 0
    datetimes: int = 0

    def add(self, value: str) -> None:
        """Count one non-empty cleaned value."""
        self.total += 1
        if is_integer(value):
            self.integers += 1
        if is_float(value):
            self.floats += 1
        if is_date(value):
            self.dates += 1
        if is_datetime(value):
            self.datetimes += 1

    def classify(self) -> ColumnType:
        """Pick the first type whose count reaches the threshold."""
        if self.total == 0:
            return ColumnType.TEXT

        threshold = self.total * THRESHOLD
        for column_type, count in (
            (ColumnType.INTEGER, self.integers),
            (ColumnType.FLOAT, self.floats),
            (ColumnType.DATETIME, self.datetimes),
            (ColumnType.DATE, self.dates),
        ):
            if count >= threshold:
                return column_type
        return ColumnType.TEXT


def infer_types(
    columns: list[str],
    rows: list[list[str]],
    null_config: NullValueConfig | None = None,
) -> dict[str, ColumnType]:
    """Infer a storage type for every column.

    Rows shorter than the column list simply contribute nothing to the
    missing positions.

    Args:
        columns: Normalized column names, in table order
        rows: Raw cell strings
        null_config: Null tokens used while cleaning

    Returns:
        Mapping of column name to ColumnType, one entry per column
    """
    result: dict[str, ColumnType] = {}

    for position, column in enumerate(columns):
        counts = ColumnTypeCounts()
        for row in rows:
            if position >= len(row):
                continue
            value = clean_cell(row[position], null_config)
            if value:
                counts.add(value)
        result[column] = counts.classify()

    return result


CellValue = int | float | date | datetime | str | None


def coerce_cell(value: str, column_type: ColumnType) -> CellValue:
    """Convert a cleaned value into the Python value inserted for column_type.

    Args:
        value: Output of clean_cell
        column_type: Inferred type of the target column

    Returns:
        None for empty values, otherwise a value of the column's type

    Raises:
        ValueError: If the value does not parse as column_type
    """
    if not value:
        return None

    if column_type is ColumnType.INTEGER:
        if not is_integer(value):
            raise ValueError(f"{value!r} is not an integer")
        return int(value)

    if column_type is ColumnType.FLOAT:
        if not is_float(value):
            raise ValueError(f"{value!r} is not a number")
        return float(value)

    if column_type is ColumnType.DATE:
        parsed = parse_with_formats(value, DATE_FORMATS)
        if parsed is None:
            raise ValueError(f"{value!r} is not a recognised date")
        return parsed.date()

    if column_type is ColumnType.DATETIME:
        parsed = parse_with_formats(value, DATETIME_FORMATS)
        if parsed is None:
            raise ValueError(f"{value!r} is not a recognised date-time")
        if parsed.tzinfo is not None:
            # TIMESTAMP columns are naive; store offsets as UTC
            try:
                parsed = parsed.astimezone(UTC).replace(tzinfo=None)
            except OverflowError as e:
                raise ValueError(f"{value!r} is out of range in UTC") from e
        return parsed

    return value
