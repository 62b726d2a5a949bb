"""Cell cleaning shared by type inference and row insertion.

The same transform runs on both paths so that a column inferred as numeric
receives values that actually parse as numbers when the worker inserts them.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from tablerake.core.config import get_settings

# Thousands separators, currency symbols and percent signs
_STRIP_CHARS = str.maketrans("", "", ",$£€¥₹%")
EN_DASH = "–"


class NullValueConfig:
    """Cell values treated as empty after cleaning."""

    def __init__(self, config_dict: dict[str, Any]):
        self._config = config_dict
        self._tokens = frozenset(s.casefold() for s in self.get_null_strings())

    def get_null_strings(self) -> list[str]:
        """Get every configured null token, in file order."""
        null_strings = []
        for category in (
            "standard_nulls",
            "spreadsheet_nulls",
            "placeholder_nulls",
            "missing_indicators",
        ):
            for item in self._config.get(category, []) or []:
                null_strings.append(str(item["value"]))
        return null_strings

    def is_null(self, value: str) -> bool:
        """Check a cleaned value against the null tokens (case-insensitive)."""
        return value.casefold() in self._tokens


def load_null_value_config(config_path: Path | None = None) -> NullValueConfig:
    """Load null value configuration from YAML.

    Args:
        config_path: Optional path to config file. If None, uses default from settings.

    Returns:
        NullValueConfig instance
    """
    if config_path is None:
        config_path = get_settings().config_path / "null_values.yaml"

    with open(config_path, encoding="utf-8") as f:
        config_dict = yaml.safe_load(f) or {}

    return NullValueConfig(config_dict)


@lru_cache(maxsize=1)
def default_null_config() -> NullValueConfig:
    """Null value configuration loaded once per process."""
    return load_null_value_config()


def clean_cell(value: str, null_config: NullValueConfig | None = None) -> str:
    """Clean a raw cell string.

    Trims whitespace, drops thousands separators, currency symbols and percent
    signs, turns an en-dash into a hyphen and cuts everything from the first
    "[" (footnote markers such as "[3]" or "[citation needed]"). Values that
    match a null token come back as "".

    Args:
        value: Raw cell text
        null_config: Null tokens to apply (defaults to the bundled config)

    Returns:
        Cleaned string, "" for empty or null-like cells
    """
    v = value.strip().translate(_STRIP_CHARS).replace(EN_DASH, "-")

    bracket = v.find("[")
    if bracket != -1:
        v = v[:bracket]

    v = v.strip()
    if not v:
        return ""

    if (null_config or default_null_config()).is_null(v):
        return ""
    return v
