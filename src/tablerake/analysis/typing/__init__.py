"""Type inference for extracted tables.

Value-based only: a column's type comes from what its cells contain, never
from its name.
"""

from tablerake.analysis.typing.cleaning import (
    NullValueConfig,
    clean_cell,
    load_null_value_config,
)
from tablerake.analysis.typing.inference import (
    ColumnTypeCounts,
    coerce_cell,
    infer_types,
)
from tablerake.analysis.typing.normalize import normalize_columns

__all__ = [
    "ColumnTypeCounts",
    "NullValueConfig",
    "clean_cell",
    "coerce_cell",
    "infer_types",
    "load_null_value_config",
    "normalize_columns",
]
