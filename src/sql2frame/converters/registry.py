"""
Read-only table of default converters keyed by scan kind.

Build one ``TypeRegistry`` at process start (``DEFAULT_REGISTRY``) and pass it
into resolution calls; it is never mutated, so concurrent pipelines can share it.
"""
from __future__ import annotations

import json
from datetime import date, datetime, time, timezone
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from sql2frame.frame import FieldType

from .models import ColumnMeta, Converter, ScanKind


def to_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, time):
        return datetime.combine(date(1970, 1, 1), value, tzinfo=value.tzinfo or timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        return to_time(datetime.fromisoformat(value.replace("Z", "+00:00")))
    raise TypeError(f"cannot convert {type(value).__name__} to time")


def to_int(value: Any) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{value!r} is not an integer")
    return int(value)


def to_float(value: Any) -> float:
    return float(value)


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "t", "1", "yes"):
            return True
        if lowered in ("false", "f", "0", "no"):
            return False
        raise ValueError(f"{value!r} is not a boolean")
    return bool(value)


def to_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def format_generic(value: Any) -> str:
    """String rendering for values with no better frame type."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, sort_keys=True)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


_DEFAULTS = {
    ScanKind.TEMPORAL: (FieldType.TIME, to_time),
    ScanKind.INTEGER: (FieldType.INT64, to_int),
    ScanKind.FLOATING: (FieldType.FLOAT64, to_float),
    ScanKind.TEXT: (FieldType.STRING, to_text),
    ScanKind.BYTES: (FieldType.STRING, to_text),
    ScanKind.BOOLEAN: (FieldType.BOOL, to_bool),
    ScanKind.OTHER: (FieldType.STRING, format_generic),
}

# What a sampled value of each kind becomes when a column is typed dynamically.
_DYNAMIC_TYPES = {
    ScanKind.TEMPORAL: (FieldType.NULLABLE_TIME, to_time),
    ScanKind.INTEGER: (FieldType.NULLABLE_FLOAT64, to_float),
    ScanKind.FLOATING: (FieldType.NULLABLE_FLOAT64, to_float),
    ScanKind.TEXT: (FieldType.NULLABLE_STRING, to_text),
    ScanKind.BYTES: (FieldType.NULLABLE_STRING, to_text),
}

STRING_FALLBACK = Converter(
    name="string fallback",
    field_type=FieldType.NULLABLE_STRING,
    convert=format_generic,
    scan_kind=ScanKind.OTHER,
)


class TypeRegistry:
    """Immutable mapping from scan kind to default converter."""

    def __init__(
        self,
        defaults: Mapping[ScanKind, Converter],
        fallback: Optional[Converter] = STRING_FALLBACK,
    ):
        self._defaults = MappingProxyType(dict(defaults))
        self._fallback = fallback

    @classmethod
    def default(cls) -> "TypeRegistry":
        defaults: Dict[ScanKind, Converter] = {}
        for kind, (field_type, func) in _DEFAULTS.items():
            defaults[kind] = Converter(
                name=f"default {kind.value}",
                field_type=field_type,
                convert=func,
                scan_kind=kind,
            )
        return cls(defaults)

    @property
    def defaults(self) -> Mapping[ScanKind, Converter]:
        return self._defaults

    @property
    def fallback(self) -> Optional[Converter]:
        return self._fallback

    def default_for(self, column: ColumnMeta) -> Optional[Converter]:
        """Default converter for a column's scan kind, nullable unless the column says otherwise."""
        if column.scan_kind is None:
            return None
        converter = self._defaults.get(column.scan_kind)
        if converter is None:
            return None
        return _with_nullability(converter, column.nullable)

    def fallback_for(self, column: ColumnMeta) -> Optional[Converter]:
        if self._fallback is None:
            return None
        return _with_nullability(self._fallback, column.nullable)

    def dynamic_converter_for(self, kind: Optional[ScanKind]) -> Converter:
        """Converter synthesized from the kind of a sampled value; None means every sample was null."""
        if kind is None:
            return Converter(name="dynamic null", field_type=FieldType.NULLABLE_STRING, convert=format_generic)
        field_type, func = _DYNAMIC_TYPES.get(kind, (FieldType.NULLABLE_STRING, format_generic))
        return Converter(name=f"dynamic {kind.value}", field_type=field_type, convert=func, scan_kind=kind)

    def with_defaults(self, overrides: Mapping[ScanKind, Converter]) -> "TypeRegistry":
        merged = dict(self._defaults)
        merged.update(overrides)
        return TypeRegistry(merged, self._fallback)


def _with_nullability(converter: Converter, nullable: bool) -> Converter:
    field_type = converter.field_type.as_nullable() if nullable else converter.field_type.base
    if field_type is converter.field_type:
        return converter
    return Converter(
        name=converter.name,
        field_type=field_type,
        convert=converter.convert,
        scan_kind=converter.scan_kind,
        convert_with_column=converter.convert_with_column,
    )


DEFAULT_REGISTRY = TypeRegistry.default()
