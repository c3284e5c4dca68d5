"""
Query context passed through interpolation and frame building.

A ``QueryContext`` is created once per incoming request and never mutated;
rewrites go through :meth:`QueryContext.with_sql`, which keeps every other
field of the original.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sql2frame.common.errors import Sql2FrameError


class FormatQueryOption(str, Enum):
    """How the caller wants the result shaped."""

    TIME_SERIES = "time_series"
    TABLE = "table"
    LOGS = "logs"
    TRACE = "trace"
    MULTI = "multi"

    @classmethod
    def parse(cls, value: Union[str, int, "FormatQueryOption", None]) -> "FormatQueryOption":
        if value is None or value == "":
            return cls.TIME_SERIES
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise Sql2FrameError(f"unknown format code {value}")
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized == "timeseries":
            normalized = cls.TIME_SERIES.value
        try:
            return cls(normalized)
        except ValueError:
            raise Sql2FrameError(f"unknown format '{value}'") from None


class FillMode(str, Enum):
    """Policy for a resampled time slot without a source sample."""

    PREVIOUS = "previous"
    NULL = "null"
    VALUE = "value"


class FillMissing(BaseModel):
    """Fill policy; ``values`` overrides ``value`` per column for VALUE mode."""

    model_config = ConfigDict(frozen=True)

    mode: FillMode = FillMode.NULL
    value: Optional[Any] = None
    values: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value):
        if isinstance(value, int) and not isinstance(value, bool):
            modes = list(FillMode)
            if not 0 <= value < len(modes):
                raise ValueError(f"fill mode code must be 0..{len(modes) - 1}, got {value}")
            return modes[value]
        return value

    def value_for(self, column: str) -> Any:
        return self.values.get(column, self.value)


class TimeRange(BaseModel):
    """Inclusive query time range. Naive datetimes are taken as UTC."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: datetime = Field(alias="from")
    to: datetime

    @field_validator("from_", "to", mode="after")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_order(self) -> "TimeRange":
        if self.to < self.from_:
            raise ValueError("time range ends before it starts")
        return self

    @property
    def duration(self) -> timedelta:
        return self.to - self.from_


class QueryContext(BaseModel):
    """Everything known about one query execution.

    Attributes:
        raw_sql (str): SQL text, possibly containing macro invocations.
        format (FormatQueryOption): Requested result shape.
        connection_args (Dict[str, Any]): Free-form per-query driver arguments.
        ref_id (str): Identifier of the query inside its request.
        interval (timedelta): Suggested bucket width. Zero means unset.
        time_range (Optional[TimeRange]): Dashboard time range.
        max_data_points (int): Upper bound on points the caller wants.
        fill_missing (Optional[FillMissing]): Fill policy for resampling.
        schema_name / table / column (str): Values for the table/column macros.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    raw_sql: str = Field(default="", alias="rawSql")
    format: FormatQueryOption = FormatQueryOption.TIME_SERIES
    connection_args: Dict[str, Any] = Field(default_factory=dict, alias="connectionArgs")
    ref_id: str = Field(default="A", alias="refId")
    interval: timedelta = timedelta(0)
    time_range: Optional[TimeRange] = None
    max_data_points: int = 0
    fill_missing: Optional[FillMissing] = Field(default=None, alias="fillMode")
    schema_name: str = Field(default="", alias="schema")
    table: str = ""
    column: str = ""

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, value):
        return FormatQueryOption.parse(value)

    def with_sql(self, sql: str) -> "QueryContext":
        """Returns a copy with only the SQL text replaced."""
        return self.model_copy(update={"raw_sql": sql})

    @classmethod
    def from_request(
        cls,
        payload: Mapping[str, Any],
        time_range: Optional[TimeRange] = None,
        interval: timedelta = timedelta(0),
        max_data_points: int = 0,
        ref_id: Optional[str] = None,
    ) -> "QueryContext":
        """Builds a context from a JSON query model plus request-level fields.

        The payload carries what the user typed (``rawSql``, ``format``,
        ``connectionArgs``, ``fillMode``, ``schema``, ``table``, ``column``);
        time range, interval and max data points come from the request
        envelope rather than the query JSON.
        """
        data = dict(payload)
        fill = data.pop("fillMode", None)
        if fill is not None and not isinstance(fill, FillMissing):
            fill = FillMissing.model_validate(fill)
        data["fillMode"] = fill
        data["refId"] = ref_id or data.get("refId") or "A"
        data["time_range"] = time_range
        data["interval"] = interval
        data["max_data_points"] = max_data_points
        return cls.model_validate(data)
