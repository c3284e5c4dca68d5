"""
Turns a row source into typed frames.
"""
from __future__ import annotations

from contextlib import nullcontext
from typing import Iterator, List, Optional, Sequence

from sql2frame.common.errors import ConversionError, Sql2FrameError
from sql2frame.common.logger import get_logger, query_context
from sql2frame.common.settings import settings
from sql2frame.converters.dynamic import DynamicTypeSampler
from sql2frame.converters.models import Absent, Cell, ColumnBinding, Converter
from sql2frame.converters.registry import TypeRegistry
from sql2frame.converters.resolver import ColumnResolver
from sql2frame.frame import Field, Frame, FrameMeta, NoticeSeverity
from sql2frame.query import QueryContext
from sql2frame.sources.base import RowSource

logger = get_logger("builder")

_END = object()

ROW_LIMIT_NOTICE = "Results have been limited to {limit} because the SQL row limit was reached"


class FrameBuilder:
    """Builds one frame per result set of a row source.

    Args:
        converters: Override converters, resolved before registry defaults.
        row_limit: Maximum rows per frame; negative disables the cap and
            ``None`` uses the configured default.
        registry: Default converter table.
    """

    def __init__(
        self,
        converters: Sequence[Converter] = (),
        row_limit: Optional[int] = None,
        registry: Optional[TypeRegistry] = None,
    ):
        self.resolver = ColumnResolver(converters, registry)
        self.sampler = DynamicTypeSampler(self.resolver.registry)
        self.row_limit = settings.row_limit if row_limit is None else row_limit

    def build(self, source: RowSource, query: Optional[QueryContext] = None) -> Frame:
        """Converts the source's current result set into a frame.

        Binding problems raise before any row is read. A conversion failure
        aborts the whole frame; hitting the row cap does not, it only adds a
        warning notice.
        """
        with query_context(query.ref_id) if query else nullcontext():
            return self._build(source, query)

    def _build(self, source: RowSource, query: Optional[QueryContext]) -> Frame:
        try:
            columns = source.columns()
        except Exception as exc:
            raise ConversionError(None, None, exc) from exc
        bindings = self.resolver.resolve(columns)

        try:
            rows: Iterator[Sequence[Cell]] = iter(source)
            bindings, rows = self.sampler.sample(bindings, rows, self.row_limit)
        except Sql2FrameError:
            raise
        except Exception as exc:
            raise ConversionError(None, None, exc, row=0) from exc

        fields = [Field(name=b.name, type=b.converter.field_type) for b in bindings]
        count = 0
        truncated = False
        while True:
            try:
                row = next(rows, _END)
            except Exception as exc:
                raise ConversionError(None, None, exc, row=count) from exc
            if row is _END:
                break
            if 0 <= self.row_limit <= count:
                truncated = True
                break
            self._append_row(bindings, fields, row, count)
            count += 1

        frame = Frame(
            ref_id=query.ref_id if query else "",
            fields=fields,
            meta=FrameMeta(executed_query_string=query.raw_sql if query else None),
        )
        if truncated:
            logger.warning(f"Row limit {self.row_limit} reached; frame truncated")
            frame.add_notice(ROW_LIMIT_NOTICE.format(limit=self.row_limit), NoticeSeverity.WARNING)
        logger.debug(f"Built frame with {count} rows and {len(fields)} fields")
        return frame

    def build_all(self, source: RowSource, query: Optional[QueryContext] = None) -> List[Frame]:
        """Converts every result set, in encounter order, into its own frame."""
        frames = [self.build(source, query)]
        while True:
            try:
                has_next = source.next_result_set()
            except Exception as exc:
                raise ConversionError(None, None, exc) from exc
            if not has_next:
                return frames
            frames.append(self.build(source, query))

    def _append_row(
        self,
        bindings: Sequence[ColumnBinding],
        fields: List[Field],
        row: Sequence[Cell],
        row_index: int,
    ) -> None:
        if len(row) != len(bindings):
            raise ConversionError(
                None, None,
                ValueError(f"row has {len(row)} values, expected {len(bindings)}"),
                row=row_index,
            )
        for binding, field in zip(bindings, fields):
            cell = row[binding.index]
            if isinstance(cell, Absent):
                field.append_null()
                continue
            try:
                value = binding.converter.apply(cell.value, binding.column)
            except Exception as exc:
                raise ConversionError(binding.name, binding.column.type_name, exc, row=row_index) from exc
            field.append(field.type.null_value() if value is None else value)


def build_frame(
    source: RowSource,
    row_limit: Optional[int] = None,
    converters: Sequence[Converter] = (),
    query: Optional[QueryContext] = None,
    registry: Optional[TypeRegistry] = None,
) -> Frame:
    return FrameBuilder(converters, row_limit, registry).build(source, query)


def build_frames(
    source: RowSource,
    row_limit: Optional[int] = None,
    converters: Sequence[Converter] = (),
    query: Optional[QueryContext] = None,
    registry: Optional[TypeRegistry] = None,
) -> List[Frame]:
    return FrameBuilder(converters, row_limit, registry).build_all(source, query)
