"""
In-memory row source for tests and fixtures.
"""
from __future__ import annotations

from typing import Any, Iterator, List, Optional, Sequence

from sql2frame.converters.models import Cell, ColumnMeta, ScanKind
from sql2frame.sources.base import tag_value, to_cells


class ResultSet:
    def __init__(self, columns: Sequence[ColumnMeta], rows: Sequence[Sequence[Any]], fail_at: Optional[int] = None):
        self.columns = list(columns)
        self.rows = [list(r) for r in rows]
        self.fail_at = fail_at


class ListRowSource:
    """Row source over plain Python rows.

    ``fail_at`` makes iteration raise ``IOError`` when that row index is
    requested, standing in for a dropped connection. ``rows_read`` counts
    rows handed out, so tests can check nothing is read twice.
    """

    def __init__(
        self,
        columns: Sequence[Any],
        rows: Sequence[Sequence[Any]] = (),
        fail_at: Optional[int] = None,
    ):
        self.result_sets: List[ResultSet] = [ResultSet(_as_meta(columns, rows), rows, fail_at)]
        self._current = 0
        self.rows_read = 0

    def add_result_set(
        self,
        columns: Sequence[Any],
        rows: Sequence[Sequence[Any]] = (),
        fail_at: Optional[int] = None,
    ) -> "ListRowSource":
        self.result_sets.append(ResultSet(_as_meta(columns, rows), rows, fail_at))
        return self

    def columns(self) -> List[ColumnMeta]:
        return self.result_sets[self._current].columns

    def __iter__(self) -> Iterator[Sequence[Cell]]:
        result = self.result_sets[self._current]
        for index, row in enumerate(result.rows):
            if result.fail_at is not None and index == result.fail_at:
                raise IOError(f"connection lost at row {index}")
            self.rows_read += 1
            yield to_cells(row)

    def next_result_set(self) -> bool:
        if self._current + 1 >= len(self.result_sets):
            return False
        self._current += 1
        return True


def column(name: str, type_name: str = "", scan_kind: Optional[ScanKind] = None, nullable: bool = True) -> ColumnMeta:
    return ColumnMeta(name=name, type_name=type_name, scan_kind=scan_kind, nullable=nullable)


def _as_meta(columns: Sequence[Any], rows: Sequence[Sequence[Any]]) -> List[ColumnMeta]:
    """Plain names get a scan kind suggested from the first row, like a DB-API cursor."""
    first = rows[0] if rows else None
    metas = []
    for index, col in enumerate(columns):
        if isinstance(col, ColumnMeta):
            metas.append(col)
            continue
        kind = None
        if first is not None and first[index] is not None:
            kind = tag_value(first[index])
        metas.append(ColumnMeta(name=str(col), scan_kind=kind))
    return metas
