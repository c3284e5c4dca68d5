from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterator, List, Protocol, Sequence, runtime_checkable

from sql2frame.converters.models import ABSENT, Cell, ColumnMeta, Present, ScanKind


@runtime_checkable
class RowSource(Protocol):
    """Contract for anything the frame builder can read rows from.

    The caller owns the underlying cursor: the builder never opens, closes
    or rewinds it.
    """

    def columns(self) -> List[ColumnMeta]:
        """Column metadata of the current result set, available before iteration."""
        ...

    def __iter__(self) -> Iterator[Sequence[Cell]]:
        """Yields one row of tagged cells per step for the current result set."""
        ...

    def next_result_set(self) -> bool:
        """Advances to the next result set; False when there is none."""
        ...


def tag_value(value: Any) -> ScanKind:
    """Classifies a native driver value into a scan kind."""
    if isinstance(value, bool):
        return ScanKind.BOOLEAN
    if isinstance(value, int):
        return ScanKind.INTEGER
    if isinstance(value, (float, Decimal)):
        return ScanKind.FLOATING
    if isinstance(value, str):
        return ScanKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ScanKind.BYTES
    if isinstance(value, (datetime, date, time)):
        return ScanKind.TEMPORAL
    return ScanKind.OTHER


def to_cell(value: Any) -> Cell:
    if value is None:
        return ABSENT
    return Present(value, tag_value(value))


def to_cells(row: Sequence[Any]) -> tuple:
    return tuple(to_cell(v) for v in row)
