"""
Columnar frame model produced by the frame builder and the resampler.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import polars as pl
from pydantic import BaseModel, ConfigDict, Field as PydanticField

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FieldType(str, Enum):
    """Frame field types; every base type has a nullable twin."""

    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    BOOL = "bool"
    TIME = "time"
    NULLABLE_INT64 = "nullable_int64"
    NULLABLE_FLOAT64 = "nullable_float64"
    NULLABLE_STRING = "nullable_string"
    NULLABLE_BOOL = "nullable_bool"
    NULLABLE_TIME = "nullable_time"

    @property
    def nullable(self) -> bool:
        return self.value.startswith("nullable_")

    @property
    def base(self) -> "FieldType":
        return FieldType(self.value.replace("nullable_", "", 1))

    def as_nullable(self) -> "FieldType":
        return self if self.nullable else FieldType(f"nullable_{self.value}")

    @property
    def is_time(self) -> bool:
        return self.base is FieldType.TIME

    def zero_value(self) -> Any:
        """Value stored for a null cell in a non-nullable field."""
        return _ZERO_VALUES[self.base]

    def null_value(self) -> Any:
        return None if self.nullable else self.zero_value()


_ZERO_VALUES = {
    FieldType.INT64: 0,
    FieldType.FLOAT64: 0.0,
    FieldType.STRING: "",
    FieldType.BOOL: False,
    FieldType.TIME: EPOCH,
}

_POLARS_TYPES = {
    FieldType.INT64: pl.Int64,
    FieldType.FLOAT64: pl.Float64,
    FieldType.STRING: pl.Utf8,
    FieldType.BOOL: pl.Boolean,
    FieldType.TIME: pl.Datetime(time_unit="us", time_zone="UTC"),
}


class NoticeSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notice(BaseModel):
    severity: NoticeSeverity = NoticeSeverity.INFO
    text: str


class FrameMeta(BaseModel):
    executed_query_string: Optional[str] = None
    notices: List[Notice] = PydanticField(default_factory=list)
    custom: Dict[str, Any] = PydanticField(default_factory=dict)


class Field(BaseModel):
    """One named, typed column."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    type: FieldType
    values: List[Any] = PydanticField(default_factory=list)
    labels: Dict[str, str] = PydanticField(default_factory=dict)

    def __len__(self) -> int:
        return len(self.values)

    def append(self, value: Any) -> None:
        self.values.append(value)

    def append_null(self) -> None:
        self.values.append(self.type.null_value())

    def at(self, index: int) -> Any:
        return self.values[index]

    def empty_copy(self) -> "Field":
        return Field(name=self.name, type=self.type, labels=dict(self.labels))


class Frame(BaseModel):
    """An ordered collection of equal-length named fields plus metadata."""

    name: str = ""
    ref_id: str = ""
    fields: List[Field] = PydanticField(default_factory=list)
    meta: FrameMeta = PydanticField(default_factory=FrameMeta)

    def rows(self) -> int:
        return len(self.fields[0]) if self.fields else 0

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field_by_name(self, name: str) -> Optional[Field]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def add_notice(self, text: str, severity: NoticeSeverity = NoticeSeverity.INFO) -> None:
        self.meta.notices.append(Notice(severity=severity, text=text))

    def to_polars(self) -> pl.DataFrame:
        """Exports the frame as a polars DataFrame with matching dtypes."""
        series = [
            pl.Series(f.name, f.values, dtype=_POLARS_TYPES[f.type.base])
            for f in self.fields
        ]
        return pl.DataFrame(series)
