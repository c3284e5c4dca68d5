from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Pattern, Union

from sql2frame.frame import FieldType


class ScanKind(str, Enum):
    """Tag a row source attaches to every native value it scans."""

    TEMPORAL = "temporal"
    INTEGER = "integer"
    FLOATING = "floating"
    TEXT = "text"
    BYTES = "bytes"
    BOOLEAN = "boolean"
    OTHER = "other"


@dataclass(frozen=True)
class Present:
    value: Any
    kind: ScanKind


class Absent:
    """A NULL cell."""

    _instance: Optional["Absent"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = Absent()

Cell = Union[Present, Absent]


@dataclass(frozen=True)
class ColumnMeta:
    """Column metadata reported by a row source before iteration."""

    name: str
    type_name: str = ""
    scan_kind: Optional[ScanKind] = None
    nullable: bool = True


ConvertFunc = Callable[[Any], Any]
ConvertWithColumnFunc = Callable[[Any, ColumnMeta], Any]


@dataclass(frozen=True)
class Converter:
    """How one column's native values become frame values.

    A converter supplied as an override must set at least one of
    ``column_name``, ``type_name`` or ``type_regex`` unless it is ``dynamic``.
    ``convert`` only ever sees present values; nulls never reach it.
    """

    field_type: FieldType
    convert: ConvertFunc
    name: Optional[str] = None
    scan_kind: Optional[ScanKind] = None
    type_name: Optional[str] = None
    type_regex: Optional[Union[str, Pattern[str]]] = None
    column_name: Optional[str] = None
    convert_with_column: Optional[ConvertWithColumnFunc] = None
    dynamic: bool = False
    _pattern: Optional[Pattern[str]] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.type_regex is not None:
            pattern = self.type_regex if isinstance(self.type_regex, re.Pattern) else re.compile(self.type_regex)
            object.__setattr__(self, "_pattern", pattern)

    @property
    def is_match_rule(self) -> bool:
        return bool(self.column_name or self.type_name or self._pattern is not None)

    def matches_type_regex(self, type_name: str) -> bool:
        return self._pattern is not None and self._pattern.search(type_name) is not None

    def apply(self, value: Any, column: ColumnMeta) -> Any:
        if self.convert_with_column is not None:
            return self.convert_with_column(value, column)
        return self.convert(value)

    def display_name(self) -> str:
        return self.name or self.column_name or self.type_name or self.field_type.value


@dataclass(frozen=True)
class ColumnBinding:
    """Resolved pairing of one result column with its converter."""

    index: int
    column: ColumnMeta
    converter: Converter

    @property
    def name(self) -> str:
        return self.column.name

    @property
    def is_dynamic(self) -> bool:
        return self.converter.dynamic
