"""
Macro interpolation for raw SQL.

Invocations look like ``$__name`` or ``$__name(arg1, arg2)``. Arguments are
split on commas with no quoting or escaping, so an argument can never contain
a literal comma. Expansion is a single left-to-right pass: text produced by a
macro is not scanned again.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional

from sql2frame.common.errors import (
    MacroArgumentError,
    MalformedInvocationError,
    Sql2FrameError,
    UnknownMacroError,
)
from sql2frame.common.logger import get_logger, query_context
from sql2frame.query import QueryContext, TimeRange

logger = get_logger("macros")

MacroFunc = Callable[[QueryContext, List[str]], str]

MACRO_PREFIX = "$__"

TIME_GROUP_PARTS = {
    "minute": ("year", "month", "day", "hour", "minute"),
    "hour": ("year", "month", "day", "hour"),
    "day": ("year", "month", "day"),
    "month": ("year", "month"),
    "year": ("year",),
}


def format_time(value: datetime) -> str:
    """RFC 3339 UTC literal, e.g. 2024-01-01T00:00:00Z."""
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_duration(value: timedelta) -> str:
    """Compact duration: 500ms, 30s, 1m30s, 2h, 1h0m1.5s style."""
    total_ms = int(value / timedelta(milliseconds=1))
    if total_ms < 1000:
        return f"{total_ms}ms"
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    out = ""
    if hours:
        out += f"{hours}h"
    if minutes or (hours and rest):
        out += f"{minutes}m"
    if rest:
        out += f"{rest / 1000:g}s"
    return out


def _no_args(name: str, args: List[str]) -> None:
    if args:
        raise MacroArgumentError(name, f"expected no arguments, received {len(args)}")


def _one_arg(name: str, args: List[str]) -> str:
    if len(args) != 1 or not args[0]:
        raise MacroArgumentError(name, f"expected 1 argument, received {len(args)}")
    return args[0]


def _time_range(name: str, query: QueryContext) -> TimeRange:
    if query.time_range is None:
        raise MacroArgumentError(name, "query has no time range")
    return query.time_range


def macro_interval(query: QueryContext, args: List[str]) -> str:
    _no_args("interval", args)
    return format_duration(query.interval)


def macro_interval_ms(query: QueryContext, args: List[str]) -> str:
    _no_args("interval_ms", args)
    return str(int(query.interval / timedelta(milliseconds=1)))


def macro_time_filter(query: QueryContext, args: List[str]) -> str:
    column = _one_arg("timeFilter", args)
    time_range = _time_range("timeFilter", query)
    return (
        f"{column} >= '{format_time(time_range.from_)}' "
        f"AND {column} <= '{format_time(time_range.to)}'"
    )


def macro_time_from(query: QueryContext, args: List[str]) -> str:
    column = _one_arg("timeFrom", args)
    return f"{column} >= '{format_time(_time_range('timeFrom', query).from_)}'"


def macro_time_to(query: QueryContext, args: List[str]) -> str:
    column = _one_arg("timeTo", args)
    return f"{column} <= '{format_time(_time_range('timeTo', query).to)}'"


def macro_time_group(query: QueryContext, args: List[str]) -> str:
    if len(args) != 2:
        raise MacroArgumentError("timeGroup", f"expected 2 arguments, received {len(args)}")
    column, period = args
    parts = TIME_GROUP_PARTS.get(period)
    if parts is None:
        raise MacroArgumentError("timeGroup", f"unsupported period '{period}'")
    return ", ".join(f"datepart({part}, {column})" for part in parts)


def macro_unix_epoch_filter(query: QueryContext, args: List[str]) -> str:
    column = _one_arg("unixEpochFilter", args)
    time_range = _time_range("unixEpochFilter", query)
    return (
        f"{column} >= {int(time_range.from_.timestamp())} "
        f"AND {column} <= {int(time_range.to.timestamp())}"
    )


def macro_unix_epoch_from(query: QueryContext, args: List[str]) -> str:
    _no_args("unixEpochFrom", args)
    return str(int(_time_range("unixEpochFrom", query).from_.timestamp()))


def macro_unix_epoch_to(query: QueryContext, args: List[str]) -> str:
    _no_args("unixEpochTo", args)
    return str(int(_time_range("unixEpochTo", query).to.timestamp()))


def _field_macro(name: str, attribute: str) -> MacroFunc:
    def macro(query: QueryContext, args: List[str]) -> str:
        _no_args(name, args)
        value = getattr(query, attribute)
        if not value:
            raise MacroArgumentError(name, f"query has no {name}")
        return value
    macro.__name__ = f"macro_{name}"
    return macro


DEFAULT_MACROS: Mapping[str, MacroFunc] = {
    "interval": macro_interval,
    "interval_ms": macro_interval_ms,
    "timeFilter": macro_time_filter,
    "timeFrom": macro_time_from,
    "timeTo": macro_time_to,
    "timeGroup": macro_time_group,
    "unixEpochFilter": macro_unix_epoch_filter,
    "unixEpochFrom": macro_unix_epoch_from,
    "unixEpochTo": macro_unix_epoch_to,
    "schema": _field_macro("schema", "schema_name"),
    "table": _field_macro("table", "table"),
    "column": _field_macro("column", "column"),
}


def _is_name_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _closing_paren(sql: str, open_index: int) -> int:
    depth = 0
    for index in range(open_index, len(sql)):
        if sql[index] == "(":
            depth += 1
        elif sql[index] == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def split_args(raw: str) -> List[str]:
    if not raw.strip():
        return []
    return [arg.strip() for arg in raw.split(",")]


class MacroInterpolator:
    """Expands macros in a query's SQL using a name -> function mapping."""

    def __init__(self, macros: Optional[Mapping[str, MacroFunc]] = None):
        self.macros: Dict[str, MacroFunc] = dict(DEFAULT_MACROS)
        if macros:
            self.macros.update(macros)

    def with_macros(self, macros: Mapping[str, MacroFunc]) -> "MacroInterpolator":
        merged = dict(self.macros)
        merged.update(macros)
        return MacroInterpolator(merged)

    def interpolate(self, query: QueryContext) -> str:
        """Returns the query's SQL with every macro invocation replaced.

        Raises:
            UnknownMacroError: An invocation names no registered macro.
            MacroArgumentError: A macro rejected its arguments.
            MalformedInvocationError: An argument list is never closed.
        """
        with query_context(query.ref_id):
            return self._interpolate(query)

    def _interpolate(self, query: QueryContext) -> str:
        sql = query.raw_sql
        out: List[str] = []
        position = 0
        expanded = 0
        while True:
            start = sql.find(MACRO_PREFIX, position)
            if start < 0:
                out.append(sql[position:])
                break
            out.append(sql[position:start])

            name_start = start + len(MACRO_PREFIX)
            name_end = name_start
            while name_end < len(sql) and _is_name_char(sql[name_end]):
                name_end += 1
            name = sql[name_start:name_end]
            if not name:
                out.append(MACRO_PREFIX)
                position = name_start
                continue

            macro = self.macros.get(name)
            if macro is None:
                raise UnknownMacroError(name, start)

            args: List[str] = []
            position = name_end
            if name_end < len(sql) and sql[name_end] == "(":
                close = _closing_paren(sql, name_end)
                if close < 0:
                    raise MalformedInvocationError(name, start)
                args = split_args(sql[name_end + 1:close])
                position = close + 1

            out.append(self._expand(name, macro, query, args))
            expanded += 1

        logger.debug(f"Expanded {expanded} macro invocation(s) for query {query.ref_id}")
        return "".join(out)

    def interpolate_query(self, query: QueryContext) -> QueryContext:
        """Returns a copy of the query whose SQL has been interpolated."""
        return query.with_sql(self.interpolate(query))

    def _expand(self, name: str, macro: MacroFunc, query: QueryContext, args: List[str]) -> str:
        try:
            result = macro(query, args)
        except Sql2FrameError:
            raise
        except Exception as exc:
            raise MacroArgumentError(name, str(exc)) from exc
        if not isinstance(result, str):
            raise MacroArgumentError(name, f"expanded to {type(result).__name__}, expected str")
        return result


def interpolate(query: QueryContext, macros: Optional[Mapping[str, MacroFunc]] = None) -> str:
    """Interpolates with the default macros merged with ``macros``."""
    return MacroInterpolator(macros).interpolate(query)
