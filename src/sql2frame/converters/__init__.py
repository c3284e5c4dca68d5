from .models import (
    ABSENT,
    Absent,
    Cell,
    ColumnBinding,
    ColumnMeta,
    Converter,
    Present,
    ScanKind,
)
from .registry import DEFAULT_REGISTRY, STRING_FALLBACK, TypeRegistry, format_generic
from .resolver import ColumnResolver, MatchRule, resolve_columns
from .dynamic import DYNAMIC_CONVERTER, DynamicTypeSampler

__all__ = [
    "ABSENT",
    "Absent",
    "Cell",
    "ColumnBinding",
    "ColumnMeta",
    "Converter",
    "Present",
    "ScanKind",
    "DEFAULT_REGISTRY",
    "STRING_FALLBACK",
    "TypeRegistry",
    "format_generic",
    "ColumnResolver",
    "MatchRule",
    "resolve_columns",
    "DYNAMIC_CONVERTER",
    "DynamicTypeSampler",
]
