from __future__ import annotations

from dataclasses import replace
from itertools import chain
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from sql2frame.common.logger import get_logger
from sql2frame.frame import FieldType

from .models import Cell, ColumnBinding, Converter, Present, ScanKind
from .registry import DEFAULT_REGISTRY, TypeRegistry, format_generic

logger = get_logger("converters.dynamic")

Row = Sequence[Cell]

_END = object()

# Override that asks for every otherwise-unbound column to be typed from its data.
DYNAMIC_CONVERTER = Converter(
    name="dynamic",
    field_type=FieldType.NULLABLE_STRING,
    convert=format_generic,
    dynamic=True,
)


class DynamicTypeSampler:
    """Types dynamic columns from the first non-null value each one holds.

    Rows read while sampling are buffered and handed back in front of the
    remaining cursor, so nothing is read twice.
    """

    def __init__(self, registry: Optional[TypeRegistry] = None):
        self.registry = registry or DEFAULT_REGISTRY

    def sample(
        self,
        bindings: Sequence[ColumnBinding],
        rows: Iterator[Row],
        limit: int = -1,
    ) -> Tuple[List[ColumnBinding], Iterator[Row]]:
        pending = {b.index for b in bindings if b.is_dynamic}
        if not pending:
            return list(bindings), rows

        observed: Dict[int, ScanKind] = {}
        buffered: List[Row] = []
        while pending and (limit < 0 or len(buffered) < limit):
            row = next(rows, _END)
            if row is _END:
                break
            buffered.append(row)
            for index in list(pending):
                cell = row[index]
                if isinstance(cell, Present):
                    observed[index] = cell.kind
                    pending.discard(index)

        resolved = []
        for binding in bindings:
            if binding.is_dynamic:
                kind = observed.get(binding.index)
                converter = self.registry.dynamic_converter_for(kind)
                logger.debug(
                    f"Column '{binding.name}' sampled over {len(buffered)} rows: "
                    f"{kind.value if kind else 'all null'} -> {converter.field_type.value}"
                )
                binding = replace(binding, converter=converter)
            resolved.append(binding)
        return resolved, chain(buffered, rows)
