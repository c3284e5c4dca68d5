from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from sql2frame.common.errors import DuplicateColumnNameError, UnresolvedColumnTypeError
from sql2frame.common.logger import get_logger

from .models import ColumnBinding, ColumnMeta, Converter
from .registry import DEFAULT_REGISTRY, TypeRegistry

logger = get_logger("converters.resolver")


class MatchRule(str, Enum):
    """Resolution rules in precedence order; the first match wins."""

    COLUMN_NAME = "column_name"
    TYPE_NAME = "type_name"
    TYPE_REGEX = "type_regex"
    DYNAMIC = "dynamic"
    DEFAULT = "default"
    FALLBACK = "fallback"


class ColumnResolver:
    """Binds each result column to exactly one converter.

    Overrides are checked in the order given within each rule, so callers
    control ties between two overrides of the same kind.
    """

    def __init__(self, converters: Sequence[Converter] = (), registry: Optional[TypeRegistry] = None):
        self.registry = registry or DEFAULT_REGISTRY
        self.converters = list(converters)
        dynamic = [c for c in self.converters if c.dynamic]
        # More than one dynamic override is ambiguous; none of them applies.
        self.dynamic: Optional[Converter] = dynamic[0] if len(dynamic) == 1 else None
        if len(dynamic) > 1:
            logger.warning(f"Ignoring {len(dynamic)} dynamic converters; exactly one is allowed.")
        self._rules: List[Tuple[MatchRule, Callable[[ColumnMeta], Optional[Converter]]]] = [
            (MatchRule.COLUMN_NAME, self._by_column_name),
            (MatchRule.TYPE_NAME, self._by_type_name),
            (MatchRule.TYPE_REGEX, self._by_type_regex),
            (MatchRule.DYNAMIC, lambda column: self.dynamic),
            (MatchRule.DEFAULT, self.registry.default_for),
            (MatchRule.FALLBACK, self.registry.fallback_for),
        ]

    def _by_column_name(self, column: ColumnMeta) -> Optional[Converter]:
        for converter in self.converters:
            if converter.column_name and converter.column_name == column.name:
                return converter
        return None

    def _by_type_name(self, column: ColumnMeta) -> Optional[Converter]:
        for converter in self.converters:
            if converter.type_name and converter.type_name == column.type_name:
                return converter
        return None

    def _by_type_regex(self, column: ColumnMeta) -> Optional[Converter]:
        for converter in self.converters:
            if converter.matches_type_regex(column.type_name):
                return converter
        return None

    def resolve_one(self, column: ColumnMeta) -> Tuple[MatchRule, Converter]:
        for rule, match in self._rules:
            converter = match(column)
            if converter is not None:
                return rule, converter
        raise UnresolvedColumnTypeError(column.name, column.type_name)

    def resolve(self, columns: Sequence[ColumnMeta]) -> List[ColumnBinding]:
        seen = set()
        for column in columns:
            if column.name in seen:
                raise DuplicateColumnNameError(column.name)
            seen.add(column.name)

        bindings = []
        for index, column in enumerate(columns):
            rule, converter = self.resolve_one(column)
            logger.debug(f"Column '{column.name}' ({column.type_name}) bound by {rule.value}: {converter.display_name()}")
            bindings.append(ColumnBinding(index=index, column=column, converter=converter))
        return bindings


def resolve_columns(
    columns: Sequence[ColumnMeta],
    converters: Sequence[Converter] = (),
    registry: Optional[TypeRegistry] = None,
) -> List[ColumnBinding]:
    """Produces one binding per column, in column order."""
    return ColumnResolver(converters, registry).resolve(columns)
