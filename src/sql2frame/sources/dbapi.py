"""
Row sources over PEP 249 cursors and SQLAlchemy results.
"""
from __future__ import annotations

from typing import Any, Iterator, List, Mapping, Optional, Sequence

from sqlalchemy.engine import CursorResult

from sql2frame.common.logger import get_logger
from sql2frame.converters.models import Cell, ColumnMeta, ScanKind

from .base import tag_value, to_cells

logger = get_logger("sources.dbapi")

_UNSET = object()


class DBAPIRowSource:
    """Adapts a DB-API cursor that has already executed a statement.

    Drivers that report no usable type code (sqlite3) get their scan kinds
    suggested from the first row, which is held back and yielded first.
    That row is fetched inside ``columns()``, so a binding error such as a
    duplicate column name is raised after one row has left the cursor.
    """

    def __init__(
        self,
        cursor: Any,
        type_names: Optional[Mapping[Any, str]] = None,
        scan_kinds: Optional[Mapping[str, ScanKind]] = None,
    ):
        self.cursor = cursor
        self.type_names = dict(type_names or {})
        self.scan_kinds = dict(scan_kinds or {})
        self._columns: Optional[List[ColumnMeta]] = None
        self._peeked: Any = _UNSET

    def _description(self) -> Sequence[Sequence[Any]]:
        return self.cursor.description or []

    def _fetchone(self) -> Optional[Sequence[Any]]:
        return self.cursor.fetchone()

    def _type_name(self, type_code: Any) -> str:
        if type_code is None:
            return ""
        return self.type_names.get(type_code, str(type_code))

    def columns(self) -> List[ColumnMeta]:
        if self._columns is not None:
            return self._columns

        description = self._description()
        if self._peeked is _UNSET:
            self._peeked = self._fetchone() if description else None

        columns = []
        for index, entry in enumerate(description):
            name = entry[0]
            null_ok = entry[6] if len(entry) > 6 else None
            kind = self.scan_kinds.get(name)
            if kind is None and self._peeked is not None and self._peeked[index] is not None:
                kind = tag_value(self._peeked[index])
            columns.append(ColumnMeta(
                name=name,
                type_name=self._type_name(entry[1]),
                scan_kind=kind,
                nullable=null_ok is not False,
            ))
        self._columns = columns
        return columns

    def __iter__(self) -> Iterator[Sequence[Cell]]:
        self.columns()
        if self._peeked is not None and self._peeked is not _UNSET:
            row, self._peeked = self._peeked, None
            yield to_cells(row)
        while True:
            row = self._fetchone()
            if row is None:
                return
            yield to_cells(row)

    def next_result_set(self) -> bool:
        nextset = getattr(self.cursor, "nextset", None)
        if nextset is None:
            return False
        if not nextset():
            return False
        self._columns = None
        self._peeked = _UNSET
        return True


class SQLAlchemyRowSource(DBAPIRowSource):
    """Adapts a SQLAlchemy ``CursorResult``; SQLAlchemy exposes one result set."""

    def __init__(self, result: CursorResult, **kwargs: Any):
        super().__init__(result.cursor, **kwargs)
        self.result = result
        self._names = list(result.keys())

    def _description(self) -> Sequence[Sequence[Any]]:
        if not self.result.returns_rows:
            return []
        description = self.cursor.description if self.cursor is not None else None
        if description:
            return [(name,) + tuple(entry[1:]) for name, entry in zip(self._names, description)]
        return [(name, None) for name in self._names]

    def _fetchone(self) -> Optional[Sequence[Any]]:
        return self.result.fetchone()

    def next_result_set(self) -> bool:
        return False
